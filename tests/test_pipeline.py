"""
Tests for the install pipeline — single runs, the driver, update, uninstall.
"""

import os
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest

from enginevu.core.errors import SelfTestError, UnsupportedPlatformError
from enginevu.core.models.context import InstallContext
from enginevu.core.models.run import Stage
from enginevu.core.models.status import EngineRecord, InstallStatus
from enginevu.core.persistence.status_file import load_status, save_status
from enginevu.core.services.pipeline import (
    install_engine,
    install_engines,
    uninstall_engine,
    update_engines,
)
from enginevu.engines import default_registry
from enginevu.engines.kiesel import KieselEngine
from enginevu.engines.libjs import WORKFLOW_NAME, LibJSEngine
from tests.helpers import build_libjs_artifact, fake_download, posix_only, write_script

DOWNLOAD = "enginevu.core.services.http_client.download_file"
FETCH_TEXT = "enginevu.core.services.http_client.fetch_text"
FETCH_JSON = "enginevu.core.services.http_client.fetch_json"


@pytest.fixture
def kiesel_binary(tmp_path: Path) -> Path:
    return write_script(tmp_path / "upstream" / "kiesel-linux-x86_64", "42")


@pytest.fixture
def libjs_artifact(tmp_path: Path) -> Path:
    return build_libjs_artifact(tmp_path / "upstream" / "zip")


def _github_listing(url, *, token=None, timeout=60):
    if "/artifacts" in url:
        return {"artifacts": [{"id": 77, "name": "ladybird-js-Linux-x86_64", "workflow_run": {"id": 5}}]}
    return {
        "workflow_runs": [
            {
                "id": 5,
                "name": WORKFLOW_NAME,
                "check_suite_id": 500,
                "head_sha": "cafe",
                "head_branch": "master",
                "conclusion": "success",
            },
        ]
    }


# ── Single engine ───────────────────────────────────────────────────


@posix_only
class TestInstallKiesel:
    def test_full_run(self, context: InstallContext, kiesel_binary: Path):
        with patch(FETCH_TEXT, return_value="0.1.0\n"), \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)) as dl:
            run = install_engine(KieselEngine(), "latest", context)

        assert run.stage is Stage.TESTED
        assert run.version == "0.1.0"
        assert run.url == "https://files.kiesel.dev/kiesel-linux-x86_64"
        assert run.bin_path == context.bin_dir / "kiesel"
        assert dl.call_args.kwargs["token"] is None

        installed = context.engine_dir("kiesel") / "kiesel"
        assert installed.read_bytes() == kiesel_binary.read_bytes()
        assert os.access(installed, os.X_OK)

    def test_scratch_space_removed_on_success(self, context, kiesel_binary):
        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)):
            install_engine(KieselEngine(), "latest", context)
        assert not context.work_dir("kiesel").exists()

    def test_extraction_is_byte_identical_and_executable(self, context, tmp_path):
        source = tmp_path / "raw"
        source.write_bytes(b"\x7fELF raw kiesel")
        engine = KieselEngine()
        with patch(DOWNLOAD, side_effect=fake_download(source)), \
             patch.object(KieselEngine, "test", return_value="42"):
            run = install_engine(engine, "9.9.9", context)
        extracted = context.engine_dir("kiesel") / "kiesel"
        assert extracted.read_bytes() == source.read_bytes()
        assert os.access(extracted, os.X_OK)
        assert run.version == "9.9.9"

    def test_reinstall_is_equivalent(self, context, kiesel_binary):
        runs = []
        for _ in range(2):
            with patch(FETCH_TEXT, return_value="0.1.0"), \
                 patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)):
                runs.append(install_engine(KieselEngine(), "latest", context))
        assert runs[0].bin_path == runs[1].bin_path
        assert runs[1].stage is Stage.TESTED
        assert (context.engine_dir("kiesel") / "kiesel").read_bytes() == kiesel_binary.read_bytes()

    def test_self_test_failure_keeps_scratch(self, context, tmp_path):
        broken = write_script(tmp_path / "broken", "41")
        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(broken)):
            with pytest.raises(SelfTestError):
                install_engine(KieselEngine(), "latest", context)
        assert context.work_dir("kiesel").exists()


@posix_only
class TestInstallLibJS:
    def test_full_run(self, context, libjs_artifact):
        with patch(FETCH_JSON, side_effect=_github_listing), \
             patch(DOWNLOAD, side_effect=fake_download(libjs_artifact)) as dl:
            run = install_engine(LibJSEngine(), "latest", context)

        assert run.version == "77/cafe"
        assert run.url.endswith("/actions/artifacts/77/zip")
        assert dl.call_args.kwargs["token"] == "test-token"
        assert run.bin_path == context.bin_dir / "serenity-js"

        engine_dir = context.engine_dir("libjs")
        assert (engine_dir / "bin" / "js").is_file()
        assert (engine_dir / "lib" / "liblagom-js.so.0").is_file()
        assert (engine_dir / "lib" / "nested" / "libextra.so").is_file()
        assert f'"{engine_dir / "bin" / "js"}" "$@"' in run.bin_path.read_text()


class TestInstallFailures:
    def test_unsupported_platform_before_any_io(self, install_root):
        ctx = InstallContext(platform="darwin-arm64", root=install_root)
        with patch(FETCH_TEXT) as fetch, patch(DOWNLOAD) as dl:
            with pytest.raises(UnsupportedPlatformError):
                install_engine(KieselEngine(), "latest", ctx)
        fetch.assert_not_called()
        dl.assert_not_called()
        assert not install_root.exists()

    def test_network_errors_propagate_unmodified(self, context):
        error = urllib.error.URLError("connection refused")
        with patch(FETCH_TEXT, side_effect=error):
            with pytest.raises(urllib.error.URLError) as exc:
                install_engine(KieselEngine(), "latest", context)
        assert exc.value is error

    def test_download_failure_stops_before_extract(self, context):
        with patch(FETCH_TEXT, return_value="1"), \
             patch(DOWNLOAD, side_effect=urllib.error.HTTPError("u", 404, "nf", {}, None)), \
             patch.object(KieselEngine, "extract") as extract:
            with pytest.raises(urllib.error.HTTPError):
                install_engine(KieselEngine(), "latest", context)
        extract.assert_not_called()


# ── Driver ──────────────────────────────────────────────────────────


@posix_only
class TestInstallEngines:
    def test_records_status(self, context, kiesel_binary):
        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)):
            receipts = install_engines(default_registry(), ["kiesel"], context)

        assert [r.status for r in receipts] == ["ok"]
        assert receipts[0].version == "0.1.0"
        status = load_status(context.status_path)
        record = status.engines["kiesel"]
        assert record.version == "0.1.0"
        assert record.platform == "linux-x64"
        assert record.bin_entries == [str(context.bin_dir / "kiesel")]

    def test_failure_does_not_stop_other_engines(self, context, kiesel_binary):
        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)):
            receipts = install_engines(default_registry(), ["nope", "kiesel"], context)
        assert [r.status for r in receipts] == ["failed", "ok"]
        assert "Unknown engine 'nope'" in receipts[0].error
        assert receipts[0].metadata["error_type"] == "UnknownEngineError"

    def test_explicit_version_rejected_for_libjs(self, context):
        receipts = install_engines(default_registry(), ["libjs"], context, version="123")
        assert receipts[0].failed
        assert "only provides binary builds for 'latest'" in receipts[0].error
        assert "libjs" not in load_status(context.status_path).engines


# ── Update / uninstall ──────────────────────────────────────────────


def _seed(context: InstallContext, engine_id: str, version: str, entries=()) -> None:
    status = InstallStatus()
    status.record(EngineRecord(id=engine_id, version=version, bin_entries=list(entries)))
    save_status(status, context.status_path)


class TestUpdateEngines:
    def test_up_to_date_is_skipped(self, context):
        _seed(context, "kiesel", "0.1.0")
        with patch(FETCH_TEXT, return_value="0.1.0"), patch(DOWNLOAD) as dl:
            receipts = update_engines(default_registry(), context)
        assert [r.status for r in receipts] == ["skipped"]
        assert "up to date" in receipts[0].output
        dl.assert_not_called()

    @posix_only
    def test_newer_version_is_installed(self, context, kiesel_binary):
        _seed(context, "kiesel", "0.0.9")
        with patch(FETCH_TEXT, return_value="0.1.0") as fetch, \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)):
            receipts = update_engines(default_registry(), context)
        assert receipts[0].ok
        assert receipts[0].version == "0.1.0"
        assert fetch.call_count == 1
        assert load_status(context.status_path).engines["kiesel"].version == "0.1.0"

    def test_not_installed_is_skipped(self, context):
        receipts = update_engines(default_registry(), context, engine_ids=["libjs"])
        assert receipts[0].status == "skipped"
        assert "not installed" in receipts[0].output

    def test_resolution_failure_is_reported(self, context):
        _seed(context, "kiesel", "0.0.9")
        with patch(FETCH_TEXT, side_effect=urllib.error.URLError("offline")):
            receipts = update_engines(default_registry(), context)
        assert receipts[0].failed
        assert "offline" in receipts[0].error

    def test_nothing_installed(self, context):
        assert update_engines(default_registry(), context) == []


@posix_only
class TestBrokenReinstall:
    def _install(self, context, binary):
        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(binary)):
            return install_engines(default_registry(), ["kiesel"], context)

    def test_failed_reinstall_is_recorded_and_updated(self, context, kiesel_binary, tmp_path):
        assert self._install(context, kiesel_binary)[0].ok

        broken = write_script(tmp_path / "broken", "41")
        (receipt,) = self._install(context, broken)
        assert receipt.failed
        assert receipt.metadata["broken"] is True
        assert receipt.metadata["stage"] == "installed"
        assert load_status(context.status_path).engines["kiesel"].broken

        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=fake_download(kiesel_binary)) as dl:
            (updated,) = update_engines(default_registry(), context)
        assert updated.ok
        dl.assert_called_once()
        record = load_status(context.status_path).engines["kiesel"]
        assert not record.broken
        assert record.version == "0.1.0"

    def test_failure_before_replacing_files_keeps_record(self, context, kiesel_binary):
        assert self._install(context, kiesel_binary)[0].ok

        with patch(FETCH_TEXT, return_value="0.1.0"), \
             patch(DOWNLOAD, side_effect=urllib.error.URLError("offline")):
            (receipt,) = install_engines(default_registry(), ["kiesel"], context)
        assert receipt.failed
        assert "broken" not in receipt.metadata
        record = load_status(context.status_path).engines["kiesel"]
        assert not record.broken
        assert (context.engine_dir("kiesel") / "kiesel").read_bytes() == kiesel_binary.read_bytes()

    def test_broken_install_can_be_uninstalled(self, context, tmp_path):
        (receipt,) = self._install(context, write_script(tmp_path / "broken", "41"))
        assert receipt.failed
        assert uninstall_engine("kiesel", context).ok
        assert not (context.bin_dir / "kiesel").exists()
        assert not context.engine_dir("kiesel").exists()


class TestUninstallEngine:
    def test_removes_files_and_record(self, context):
        entry = context.bin_dir / "kiesel"
        entry.parent.mkdir(parents=True)
        entry.write_text("x")
        (context.engine_dir("kiesel")).mkdir(parents=True)
        _seed(context, "kiesel", "0.1.0", entries=[str(entry)])

        receipt = uninstall_engine("kiesel", context)
        assert receipt.ok
        assert not entry.exists()
        assert not context.engine_dir("kiesel").exists()
        assert load_status(context.status_path).engines == {}

    def test_not_installed(self, context):
        receipt = uninstall_engine("kiesel", context)
        assert receipt.status == "skipped"
