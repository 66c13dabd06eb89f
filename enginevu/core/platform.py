"""
Platform detection — ``{os}-{arch}`` identifiers.

Identifiers use the same vocabulary upstream engine projects publish
builds for (``linux-x64``, ``darwin-arm64``, ``win32-ia32``, ...).
They are lookup keys only and are never parsed beyond the split.
"""

from __future__ import annotations

import platform as _platform

KNOWN_PLATFORMS: tuple[str, ...] = (
    "darwin-x64",
    "darwin-arm64",
    "linux-ia32",
    "linux-x64",
    "linux-arm64",
    "linux-riscv64",
    "win32-ia32",
    "win32-x64",
    "win32-arm64",
)

_OS_MAP = {
    "linux": "linux",
    "darwin": "darwin",
    "windows": "win32",
}

_ARCH_MAP = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "aarch64": "arm64",
    "arm64": "arm64",
    "riscv64": "riscv64",
}


def detect_platform(system: str | None = None, machine: str | None = None) -> str:
    """Return the platform identifier for this machine.

    Args:
        system: Override for ``platform.system()`` (tests).
        machine: Override for ``platform.machine()`` (tests).

    Returns:
        An identifier like ``linux-x64``. Unknown OS or architecture
        names pass through lowercased, so engines report them as
        unsupported instead of this function failing.
    """
    system = (system if system is not None else _platform.system()).lower()
    machine = (machine if machine is not None else _platform.machine()).lower()
    return f"{_OS_MAP.get(system, system)}-{_ARCH_MAP.get(machine, machine)}"


def is_windows(platform_id: str) -> bool:
    """Whether the identifier names a Windows platform."""
    return platform_id.startswith("win32-")
