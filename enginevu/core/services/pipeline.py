"""
Install pipeline — drives an engine through its install stages.

    install_engine()    one engine, raises on any failure
    install_engines()   many engines, one Receipt each, never raises
    update_engines()    reinstall installed engines whose latest moved
    uninstall_engine()  remove files, bin entries and status record

Stage order for a single run (see InstallRun):

    CREATED → VERSION_RESOLVED → URL_BUILT → DOWNLOADED
            → EXTRACTED → INSTALLED → TESTED

A failure at any stage aborts the run. The scratch directory is left
as it is on failure and removed on success. A run that fails after
clearing ``engines/<id>`` is recorded as broken in the status file.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlparse

from enginevu.core.models.context import InstallContext
from enginevu.core.models.receipt import Receipt
from enginevu.core.models.run import STAGE_ORDER, InstallRun, Stage
from enginevu.core.models.status import EngineRecord, InstallStatus
from enginevu.core.persistence.status_file import load_status, save_status
from enginevu.core.services import http_client
from enginevu.core.services.registration import Registrar, unregister
from enginevu.engines.base import LATEST, Engine
from enginevu.engines.registry import EngineRegistry

logger = logging.getLogger(__name__)


def install_engine(
    engine: Engine,
    version: str,
    context: InstallContext,
    *,
    resolved: str | None = None,
    run: InstallRun | None = None,
) -> InstallRun:
    """Install one engine and run its self-test.

    Args:
        engine: The engine to install.
        version: Version token, ``latest`` or explicit.
        context: Platform, root and credentials for this run.
        resolved: Already-resolved version; skips the resolver's
            network calls (used by ``update``).
        run: Run to drive, created when not given. Callers pass
            their own to see the stage reached when this raises.

    Returns:
        The finished run, at stage TESTED.

    Raises:
        EngineError: Unsupported platform, resolution or self-test failure.
        urllib.error.URLError: Network failures, unmodified.
        OSError: Filesystem failures, unmodified.
    """
    engine_id = engine.spec.id
    if run is None:
        run = InstallRun(engine_id=engine_id, requested_version=version)

    # Unsupported platforms fail before any I/O
    engine.artifact_name(context.platform)

    work = context.work_dir(engine_id)
    _clear(work)

    logger.info("Installing %s (%s) for %s", engine.spec.name, version, context.platform)

    run.version = resolved if resolved is not None else engine.resolve_version(version, context)
    run.advance(Stage.VERSION_RESOLVED)
    logger.info("%s version: %s", engine.spec.name, run.version)

    run.url = engine.download_url(run.version, context)
    run.advance(Stage.URL_BUILT)

    run.download_path = work / "download" / _download_name(run.url)
    http_client.download_file(
        run.url,
        run.download_path,
        token=context.github_token if engine.requires_token else None,
        timeout=context.http_timeout,
    )
    run.advance(Stage.DOWNLOADED)

    run.extracted_path = work / "extracted"
    engine.extract(run, context)
    run.advance(Stage.EXTRACTED)

    run.install_path = context.engine_dir(engine_id)
    _clear(run.install_path)
    run.bin_path = engine.install(run, Registrar(context, run))
    run.advance(Stage.INSTALLED)

    engine.test(run, context)
    run.advance(Stage.TESTED)

    shutil.rmtree(work, ignore_errors=True)
    logger.info("%s %s installed at %s", engine.spec.name, run.version, run.bin_path)
    return run


def install_engines(
    registry: EngineRegistry,
    engine_ids: Iterable[str],
    context: InstallContext,
    *,
    version: str = LATEST,
) -> list[Receipt]:
    """Install several engines in order, one Receipt per engine.

    A failing engine is reported in its Receipt; the remaining
    engines are still attempted. Successful installs are recorded in
    the status file as they finish.
    """
    status = load_status(context.status_path)
    receipts: list[Receipt] = []
    for engine_id in engine_ids:
        receipts.append(_install_one(registry, engine_id, context, status, version=version))
    return receipts


def update_engines(
    registry: EngineRegistry,
    context: InstallContext,
    *,
    engine_ids: Iterable[str] | None = None,
    force: bool = False,
) -> list[Receipt]:
    """Reinstall installed engines whose ``latest`` version changed.

    Args:
        engine_ids: Restrict to these engines (default: all installed).
        force: Reinstall even when the installed version is current.

    Engines recorded as broken are always reinstalled.
    """
    status = load_status(context.status_path)
    ids = list(engine_ids) if engine_ids is not None else list(status.engines)
    receipts: list[Receipt] = []

    for engine_id in ids:
        start = time.monotonic()
        record = status.engines.get(engine_id)
        if record is None:
            receipts.append(Receipt.skip(engine_id, reason=f"{engine_id} is not installed"))
            continue
        try:
            engine = registry.require(engine_id)
            engine.artifact_name(context.platform)
            latest = engine.resolve_version(LATEST, context)
        except Exception as e:
            logger.error("Cannot check %s for updates: %s", engine_id, e)
            receipts.append(Receipt.failure(engine_id, error=str(e), duration_ms=_elapsed(start)))
            continue

        if latest == record.version and not record.broken and not force:
            receipts.append(
                Receipt.skip(
                    engine_id,
                    reason=f"{engine_id} {record.version} is up to date",
                    version=record.version,
                    duration_ms=_elapsed(start),
                )
            )
            continue

        receipts.append(_install_one(registry, engine_id, context, status, resolved=latest))
    return receipts


def uninstall_engine(engine_id: str, context: InstallContext) -> Receipt:
    """Remove an installed engine: its files, bin entries and record."""
    status = load_status(context.status_path)
    record = status.forget(engine_id)
    if record is None:
        return Receipt.skip(engine_id, reason=f"{engine_id} is not installed")

    unregister(record.bin_entries, context.engine_dir(engine_id))
    save_status(status, context.status_path)
    logger.info("Uninstalled %s %s", engine_id, record.version)
    return Receipt.success(engine_id, version=record.version, bin_path="", output="uninstalled")


# ── Helpers ─────────────────────────────────────────────────────────


def _install_one(
    registry: EngineRegistry,
    engine_id: str,
    context: InstallContext,
    status: InstallStatus,
    *,
    version: str = LATEST,
    resolved: str | None = None,
) -> Receipt:
    start = time.monotonic()
    run = InstallRun(engine_id=engine_id, requested_version=version)
    try:
        engine = registry.require(engine_id)
        install_engine(engine, version, context, resolved=resolved, run=run)
    except Exception as e:
        logger.error("Installing %s failed: %s", engine_id, e)
        metadata = {"error_type": type(e).__name__, "stage": run.stage.value}
        if _replaced_install_dir(run):
            _record_broken(status, run, context)
            metadata["broken"] = True
        return Receipt.failure(
            engine_id,
            error=str(e),
            duration_ms=_elapsed(start),
            metadata=metadata,
        )

    status.record(
        EngineRecord(
            id=engine_id,
            version=run.version or "",
            platform=context.platform,
            bin_entries=[str(p) for p in run.bin_entries],
        )
    )
    save_status(status, context.status_path)
    return Receipt.success(
        engine_id,
        version=run.version or "",
        bin_path=str(run.bin_path),
        duration_ms=_elapsed(start),
        metadata={"url": run.url},
    )


def _replaced_install_dir(run: InstallRun) -> bool:
    """Whether the run got far enough to clear ``engines/<id>``."""
    return STAGE_ORDER.index(run.stage) >= STAGE_ORDER.index(Stage.EXTRACTED)


def _record_broken(status: InstallStatus, run: InstallRun, context: InstallContext) -> None:
    """Keep a record of a half-replaced install so update and uninstall see it."""
    previous = status.engines.get(run.engine_id)
    entries = list(previous.bin_entries) if previous else []
    entries += [str(p) for p in run.bin_entries if str(p) not in entries]
    status.record(
        EngineRecord(
            id=run.engine_id,
            version=run.version or "",
            platform=context.platform,
            bin_entries=entries,
            broken=True,
        )
    )
    save_status(status, context.status_path)
    logger.warning("%s left broken under %s", run.engine_id, context.engine_dir(run.engine_id))


def _clear(path: Path) -> None:
    """Remove a directory left over from an earlier run."""
    if path.exists():
        shutil.rmtree(path)


def _download_name(url: str) -> str:
    name = Path(urlparse(url).path).name
    return name or "download"


def _elapsed(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
