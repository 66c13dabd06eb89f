"""
Kiesel — https://kiesel.dev

Upstream publishes a single raw executable per platform and a
plaintext ``version.txt`` naming the current build. Only the latest
build is downloadable; an explicit version is accepted as a label.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from enginevu.core.models.context import InstallContext
from enginevu.core.models.engine import EngineSpec
from enginevu.core.models.run import InstallRun
from enginevu.core.platform import is_windows
from enginevu.core.services import http_client
from enginevu.core.services.registration import Registrar
from enginevu.engines.base import LATEST, Engine

logger = logging.getLogger(__name__)

FILES_BASE = "https://files.kiesel.dev"
VERSION_URL = f"{FILES_BASE}/version.txt"


class KieselEngine(Engine):
    spec = EngineSpec(
        name="Kiesel",
        id="kiesel",
        supported=(
            "linux-ia32",
            "linux-x64",
            "linux-arm64",
            "linux-riscv64",
            "win32-ia32",
            "win32-x64",
            "win32-arm64",
        ),
    )
    artifacts = {
        "linux-ia32": "linux-x86",
        "linux-x64": "linux-x86_64",
        "linux-arm64": "linux-aarch64",
        "linux-riscv64": "linux-riscv64",
        "win32-ia32": "windows-x86",
        "win32-x64": "windows-x86_64",
        "win32-arm64": "windows-aarch64",
    }

    test_program = 'Kiesel.print("42");'
    test_output = "42"

    def resolve_version(self, version: str, context: InstallContext) -> str:
        if version != LATEST:
            return version
        return http_client.fetch_text(VERSION_URL, timeout=context.http_timeout).strip()

    def download_url(self, version: str, context: InstallContext) -> str:
        # files.kiesel.dev only serves the current build
        return f"{FILES_BASE}/kiesel-{self.artifact_name(context.platform)}"

    def extract(self, run: InstallRun, context: InstallContext) -> None:
        # The download is the executable itself: chmod and copy it
        run.download_path.chmod(0o755)
        run.extracted_path.mkdir(parents=True, exist_ok=True)
        target = run.extracted_path / self.binary_name(context.platform)
        shutil.copyfile(run.download_path, target)
        target.chmod(0o755)
        logger.debug("Copied %s → %s", run.download_path, target)

    def install(self, run: InstallRun, registrar: Registrar) -> Path:
        return registrar.register_binary(self.binary_name(registrar.context.platform), "kiesel")

    @staticmethod
    def binary_name(platform: str) -> str:
        return "kiesel.exe" if is_windows(platform) else "kiesel"
