"""
Error taxonomy for engine installs.

Every failure aborts the current engine's run and surfaces to the
caller. Nothing here is retried. Network errors (``urllib.error``)
and filesystem errors (``OSError``) are NOT wrapped — they propagate
as raised by the standard library.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for install failures raised by enginevu itself."""


class UnsupportedPlatformError(EngineError):
    """The engine publishes no build for the requested platform."""

    def __init__(self, engine: str, platform: str, message: str | None = None):
        self.engine = engine
        self.platform = platform
        super().__init__(message or f"No {engine} builds available for {platform}")


class VersionResolutionError(EngineError):
    """A version token could not be turned into a concrete version."""


class ArtifactNotFoundError(VersionResolutionError):
    """No build artifact matched the engine's artifact name."""


class BuildNotFoundError(VersionResolutionError):
    """No successful build run matched the engine's workflow."""


class MissingTokenError(VersionResolutionError):
    """The engine's build host requires a GitHub token and none was given."""


class StageError(EngineError):
    """An install run was driven out of order."""


class SelfTestError(EngineError):
    """The installed binary did not print the expected output."""

    def __init__(
        self,
        engine: str,
        expected: str,
        actual: str,
        returncode: int = 0,
        stderr: str = "",
    ):
        self.engine = engine
        self.expected = expected
        self.actual = actual
        self.returncode = returncode
        self.stderr = stderr
        detail = f"expected {expected!r}, got {actual!r}"
        if returncode != 0:
            detail += f" (exit {returncode})"
            if stderr:
                detail += f": {stderr.strip()}"
        super().__init__(f"{engine} self-test failed: {detail}")


class UnknownEngineError(EngineError):
    """No engine is registered under the requested id."""
