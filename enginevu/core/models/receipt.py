"""
Receipt — the outcome of one engine's install run.

The pipeline itself raises on failure; the multi-engine driver turns
each engine's outcome into a Receipt so one failing engine does not
stop the others from being attempted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of installing (or skipping) one engine."""

    engine: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    version: str | None = None
    bin_path: str | None = None
    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the engine was installed."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the install failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, engine: str, version: str, bin_path: str, **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(engine=engine, status="ok", version=version, bin_path=bin_path, **kwargs)

    @classmethod
    def failure(cls, engine: str, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(engine=engine, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, engine: str, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt."""
        return cls(engine=engine, status="skipped", output=reason, **kwargs)
