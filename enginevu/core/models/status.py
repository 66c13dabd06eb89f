"""
InstallStatus — what is installed under the root.

Serialized to ``<root>/status.json`` after every successful install
and read back by ``status``, ``update`` and ``uninstall``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class EngineRecord(BaseModel):
    """One installed engine."""

    id: str
    version: str
    platform: str = ""
    installed_at: str = Field(default_factory=_now_iso)
    bin_entries: list[str] = Field(default_factory=list)  # paths under bin/
    broken: bool = False  # install dir was replaced by a run that failed


class InstallStatus(BaseModel):
    """Root status model — serialized to status.json."""

    schema_version: int = 1
    updated_at: str = Field(default_factory=_now_iso)

    engines: dict[str, EngineRecord] = Field(default_factory=dict)

    metadata: dict[str, Any] = Field(default_factory=dict)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _now_iso()

    def record(self, record: EngineRecord) -> None:
        """Insert or replace an engine's record."""
        self.engines[record.id] = record

    def forget(self, engine_id: str) -> EngineRecord | None:
        """Drop an engine's record, returning it if present."""
        return self.engines.pop(engine_id, None)
