"""
InstallContext — everything an engine needs from the outside world.

Process state (current platform, tokens from the environment, the
install root) is captured here once by the entry point and passed
explicitly into every resolver and installer call. Engines never read
``os.environ`` or probe the host themselves.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

DEFAULT_HTTP_TIMEOUT = 60
DEFAULT_TEST_TIMEOUT = 30


class InstallContext(BaseModel):
    """Immutable configuration value for one or more install runs."""

    model_config = ConfigDict(frozen=True)

    platform: str
    root: Path
    github_token: str | None = None
    http_timeout: int = DEFAULT_HTTP_TIMEOUT
    test_timeout: int = DEFAULT_TEST_TIMEOUT

    # ── Filesystem layout ────────────────────────────────────────

    @property
    def bin_dir(self) -> Path:
        """Shared registration directory for binaries and scripts."""
        return self.root / "bin"

    @property
    def status_path(self) -> Path:
        """Path of the installed-engines status file."""
        return self.root / "status.json"

    def engine_dir(self, engine_id: str) -> Path:
        """Installed files for one engine."""
        return self.root / "engines" / engine_id

    def work_dir(self, engine_id: str) -> Path:
        """Scratch space (download + extraction) for one engine."""
        return self.root / "work" / engine_id
