"""
LibJS — the JavaScript engine of the Ladybird browser.

Binaries only exist as GitHub Actions artifacts of the Ladybird repo,
so only ``latest`` can be installed and every API call needs a token.
Resolving ``latest`` takes two listings:

    1. artifacts named ``ladybird-js-<build>``
    2. successful push runs of the packaging workflow on master

Only runs that produced one of the listed artifacts are considered.
The most recent of those is the one with the highest
``check_suite_id`` (compared as integers), and the resolved version
is ``<artifact id>/<head sha>`` of that artifact and the run that
built it.

The artifact zip wraps a single ``.tar.gz`` with ``bin/`` and
``lib/`` inside, so extraction is two-staged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from enginevu.core.errors import (
    ArtifactNotFoundError,
    BuildNotFoundError,
    MissingTokenError,
    VersionResolutionError,
)
from enginevu.core.models.context import InstallContext
from enginevu.core.models.engine import EngineSpec
from enginevu.core.models.run import InstallRun
from enginevu.core.services import http_client
from enginevu.core.services.archive import untar, unzip
from enginevu.core.services.registration import Registrar
from enginevu.engines.base import LATEST, Engine

logger = logging.getLogger(__name__)

REPO = "ladybirdbrowser/ladybird"
API_BASE = f"https://api.github.com/repos/{REPO}/actions"
ARTIFACTS_URL = f"{API_BASE}/artifacts?per_page=100"
RUNS_URL = f"{API_BASE}/runs?event=push&branch=master&status=success&per_page=100"
WORKFLOW_NAME = "Package the js repl as a binary artifact"
BRANCH = "master"


class LibJSEngine(Engine):
    spec = EngineSpec(
        name="LibJS",
        id="libjs",
        supported=("linux-x64", "darwin-x64", "darwin-arm64"),
    )
    artifacts = {
        "linux-x64": "Linux-x86_64",
        "darwin-x64": "macOS-universal2",
        "darwin-arm64": "macOS-universal2",
    }
    unsupported_message = "{name} does not have binary builds for {platform}"
    requires_token = True

    test_program = 'console.log("42")'
    test_output = '"42"'

    def package_name(self, platform: str) -> str:
        return f"ladybird-js-{self.artifact_name(platform)}"

    # ── Version ──────────────────────────────────────────────────

    def resolve_version(self, version: str, context: InstallContext) -> str:
        if version != LATEST:
            raise VersionResolutionError("LibJS only provides binary builds for 'latest'")

        name = self.package_name(context.platform)
        token = context.github_token
        if not token:
            raise MissingTokenError(
                f"LibJS builds are GitHub Actions artifacts of {REPO}; set GITHUB_TOKEN to install them"
            )

        listing = http_client.fetch_json(ARTIFACTS_URL, token=token, timeout=context.http_timeout)
        artifacts = select_artifacts(listing, name)
        if not artifacts:
            raise ArtifactNotFoundError(f"Failed to find any artifacts for {name} on {REPO}")

        runs = http_client.fetch_json(RUNS_URL, token=token, timeout=context.http_timeout)
        build = latest_build(artifacts, select_runs(runs))
        if build is None:
            raise BuildNotFoundError("Failed to find any recent ladybird-js build")

        artifact, run = build
        logger.info(
            "LibJS: artifact %s from run %s (%s)",
            artifact["id"], run["id"], run["head_sha"][:12],
        )
        return f"{artifact['id']}/{run['head_sha']}"

    def download_url(self, version: str, context: InstallContext) -> str:
        artifact_id = version.split("/", 1)[0]
        return f"{API_BASE}/artifacts/{artifact_id}/zip"

    # ── Files ────────────────────────────────────────────────────

    def extract(self, run: InstallRun, context: InstallContext) -> None:
        staging = run.extracted_zip_path
        unzip(run.download_path, staging)
        untar(staging / f"{self.package_name(context.platform)}.tar.gz", run.extracted_path)

    def install(self, run: InstallRun, registrar: Registrar) -> Path:
        registrar.register_assets("lib/**")
        js = registrar.register_asset("bin/js")
        return registrar.register_script("serenity-js", f'"{js}"')


def select_artifacts(listing: Any, name: str) -> list[dict[str, Any]]:
    """Non-expired artifacts called ``name``, in listing (newest-first) order."""
    if not isinstance(listing, dict):
        return []
    return [
        a for a in listing.get("artifacts") or []
        if a.get("name") == name and not a.get("expired", False)
    ]


def select_runs(listing: Any) -> list[dict[str, Any]]:
    """Successful packaging runs on master that carry a commit sha."""
    if not isinstance(listing, dict):
        return []
    return [
        r for r in listing.get("workflow_runs") or []
        if r.get("name") == WORKFLOW_NAME
        and r.get("head_branch") == BRANCH
        and r.get("conclusion") == "success"
        and r.get("head_sha")
        and r.get("id") is not None
    ]


def latest_build(
    artifacts: list[dict[str, Any]],
    runs: list[dict[str, Any]],
) -> tuple[dict[str, Any], dict[str, Any]] | None:
    """The newest (artifact, run) pair where the run built the artifact.

    Runs are ranked by integer ``check_suite_id``. Returns None when no
    run produced any of the artifacts.
    """
    by_run: dict[Any, dict[str, Any]] = {}
    for artifact in artifacts:
        run_id = (artifact.get("workflow_run") or {}).get("id")
        if run_id is not None:
            by_run.setdefault(run_id, artifact)

    built = [r for r in runs if r["id"] in by_run]
    if not built:
        return None
    run = max(built, key=lambda r: int(r.get("check_suite_id") or 0))
    return by_run[run["id"]], run
