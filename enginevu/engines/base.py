"""
Engine base — the contract every installable engine implements.

An engine is a stateless object: static metadata (``spec``) plus the
five lifecycle operations the pipeline drives in order:

    resolve_version → download_url → extract → install → test

All per-install state lives in the InstallRun handed to each call,
and everything taken from the outside world (platform, tokens, root
directory) arrives in the InstallContext. Engines never read the
process environment themselves.

To add an engine:
    1. Subclass Engine, fill in ``spec`` and ``artifacts``
    2. Implement resolve_version, download_url, extract, install
    3. Set ``test_program`` / ``test_output`` for the smoke test
    4. Register it in ``default_registry()``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import ClassVar

from enginevu.core.errors import UnsupportedPlatformError
from enginevu.core.models.context import InstallContext
from enginevu.core.models.engine import EngineSpec
from enginevu.core.models.run import InstallRun, Stage
from enginevu.core.services.registration import Registrar
from enginevu.core.services.selftest import run_self_test

LATEST = "latest"


class Engine(ABC):
    """Abstract base class for all engines."""

    spec: ClassVar[EngineSpec]

    # platform identifier → upstream build name
    artifacts: ClassVar[Mapping[str, str]] = {}
    unsupported_message: ClassVar[str] = "No {name} builds available for {platform}"

    # Whether downloads must carry the GitHub token
    requires_token: ClassVar[bool] = False

    test_program: ClassVar[str] = ""
    test_output: ClassVar[str] = ""

    # ── Platform ─────────────────────────────────────────────────

    def artifact_name(self, platform: str) -> str:
        """Map a platform identifier to the engine's build name.

        Raises:
            UnsupportedPlatformError: If the platform is not in
                ``spec.supported`` or has no build name.
        """
        if not self.spec.supports(platform) or platform not in self.artifacts:
            raise UnsupportedPlatformError(
                self.spec.name,
                platform,
                self.unsupported_message.format(name=self.spec.name, platform=platform),
            )
        return self.artifacts[platform]

    # ── Lifecycle ────────────────────────────────────────────────

    @abstractmethod
    def resolve_version(self, version: str, context: InstallContext) -> str:
        """Turn a version token (``latest`` or explicit) into a version."""

    @abstractmethod
    def download_url(self, version: str, context: InstallContext) -> str:
        """Build the artifact URL for a resolved version. Pure."""

    @abstractmethod
    def extract(self, run: InstallRun, context: InstallContext) -> None:
        """Populate ``run.extracted_path`` from ``run.download_path``."""

    @abstractmethod
    def install(self, run: InstallRun, registrar: Registrar) -> Path:
        """Register extracted files; return the entry point to test."""

    def test(self, run: InstallRun, context: InstallContext) -> str:
        """Run the smoke test against the registered entry point."""
        run.require(Stage.INSTALLED)
        return run_self_test(
            self.spec.name,
            run.installed_binary,
            ["-c", self.test_program],
            self.test_output,
            timeout=context.test_timeout,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.spec.id!r}>"
