"""
InstallRun — per-invocation state of one engine install.

A run moves through a fixed, linear sequence of stages:

    CREATED → VERSION_RESOLVED → URL_BUILT → DOWNLOADED
            → EXTRACTED → INSTALLED → TESTED

Each stage may only be entered from the one before it. A failure at
any stage aborts the run; there is no retry and no resume. The run is
owned by exactly one pipeline invocation and discarded afterwards.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from enginevu.core.errors import StageError


class Stage(str, Enum):
    """Install run stages, in order."""

    CREATED = "created"
    VERSION_RESOLVED = "version_resolved"
    URL_BUILT = "url_built"
    DOWNLOADED = "downloaded"
    EXTRACTED = "extracted"
    INSTALLED = "installed"
    TESTED = "tested"


STAGE_ORDER: tuple[Stage, ...] = tuple(Stage)


class InstallRun(BaseModel):
    """Mutable working state for installing one engine once."""

    engine_id: str
    requested_version: str = "latest"

    stage: Stage = Stage.CREATED

    version: str | None = None
    url: str | None = None
    download_path: Path | None = None
    extracted_path: Path | None = None
    install_path: Path | None = None
    bin_path: Path | None = None          # undefined until INSTALLED
    bin_entries: list[Path] = Field(default_factory=list)

    def advance(self, stage: Stage) -> None:
        """Move to ``stage``, which must directly follow the current one."""
        current = STAGE_ORDER.index(self.stage)
        target = STAGE_ORDER.index(stage)
        if target != current + 1:
            raise StageError(
                f"{self.engine_id}: cannot move from {self.stage.value} to {stage.value}"
            )
        self.stage = stage

    def require(self, stage: Stage) -> None:
        """Fail unless the run has reached exactly ``stage``."""
        if self.stage is not stage:
            raise StageError(
                f"{self.engine_id}: expected stage {stage.value}, run is at {self.stage.value}"
            )

    @property
    def extracted_zip_path(self) -> Path:
        """Intermediate directory for two-stage (zip wrapping tar) archives."""
        if self.extracted_path is None:
            raise StageError(f"{self.engine_id}: extraction path not assigned")
        return self.extracted_path.with_name(self.extracted_path.name + "zip")

    @property
    def installed_binary(self) -> Path:
        """The registered entry point; only valid once installed."""
        if self.bin_path is None or STAGE_ORDER.index(self.stage) < STAGE_ORDER.index(
            Stage.INSTALLED
        ):
            raise StageError(f"{self.engine_id}: binary is not installed yet")
        return self.bin_path
