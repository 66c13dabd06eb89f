"""
Registration — expose extracted files as installed entry points.

Layout under the install root:

    bin/<name>            shared, discoverable entry points
    engines/<id>/...      the engine's installed files (assets)

Assets are copied out of the run's extraction directory into the
engine directory. Binaries are assets that additionally get an entry
in ``bin/``: a symlink on POSIX, a ``.cmd`` wrapper on Windows.
Scripts are small wrappers in ``bin/`` that invoke an installed file
with a fixed argument prefix.

Name collisions in ``bin/`` are not arbitrated: the last engine to
register a name owns it.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from enginevu.core.models.context import InstallContext
from enginevu.core.models.run import InstallRun
from enginevu.core.platform import is_windows

logger = logging.getLogger(__name__)

_POSIX_SCRIPT = '#!/usr/bin/env bash\n{command} "$@"\n'
_WINDOWS_SCRIPT = "@echo off\r\n{command} %*\r\n"


class Registrar:
    """Registers one run's extracted files into the shared layout."""

    def __init__(self, context: InstallContext, run: InstallRun):
        if run.extracted_path is None:
            raise ValueError(f"{run.engine_id}: run has no extraction path")
        self.context = context
        self.run = run
        self.source_dir = run.extracted_path
        self.install_dir = run.install_path or context.engine_dir(run.engine_id)
        self.bin_dir = context.bin_dir

    # ── Assets ───────────────────────────────────────────────────

    def register_asset(self, relpath: str) -> Path:
        """Copy one extracted file or directory into the engine directory.

        Returns:
            The installed path.
        """
        src = self.source_dir / relpath
        dst = self.install_dir / relpath
        dst.parent.mkdir(parents=True, exist_ok=True)
        if src.is_dir():
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
        else:
            _replace(dst)
            shutil.copy2(src, dst, follow_symlinks=False)
        logger.debug("Asset %s → %s", relpath, dst)
        return dst

    def register_assets(self, pattern: str) -> list[Path]:
        """Copy every extracted file matched by a glob pattern.

        Directories matched by the pattern contribute all files below
        them, so ``lib/**`` installs the whole ``lib`` tree.
        """
        installed: list[Path] = []
        seen: set[Path] = set()
        for match in sorted(self.source_dir.glob(pattern)):
            files = sorted(match.rglob("*")) if match.is_dir() and not match.is_symlink() else [match]
            for path in files:
                if path in seen or (path.is_dir() and not path.is_symlink()):
                    continue
                seen.add(path)
                installed.append(self.register_asset(path.relative_to(self.source_dir).as_posix()))
        logger.info("Registered %d asset(s) for %s matching %s", len(installed), self.run.engine_id, pattern)
        return installed

    # ── Entry points ─────────────────────────────────────────────

    def register_binary(self, name: str, alias: str | None = None) -> Path:
        """Install an extracted binary and expose it in ``bin/``.

        Returns:
            Path of the ``bin/`` entry.
        """
        alias = alias or Path(name).name
        installed = self.register_asset(name)
        if is_windows(self.context.platform):
            return self.register_script(alias, f'"{installed}"')

        self.bin_dir.mkdir(parents=True, exist_ok=True)
        entry = self.bin_dir / alias
        _replace(entry)
        os.symlink(installed, entry)
        self._remember(entry)
        logger.info("Registered binary %s → %s", entry, installed)
        return entry

    def register_script(self, name: str, command: str) -> Path:
        """Write a wrapper script in ``bin/`` forwarding all arguments.

        Args:
            name: Entry name (``.cmd`` is appended on Windows).
            command: Command prefix, already quoted as needed.

        Returns:
            Path of the script.
        """
        self.bin_dir.mkdir(parents=True, exist_ok=True)
        if is_windows(self.context.platform):
            entry = self.bin_dir / f"{name}.cmd"
            content = _WINDOWS_SCRIPT.format(command=command)
        else:
            entry = self.bin_dir / name
            content = _POSIX_SCRIPT.format(command=command)
        _replace(entry)
        entry.write_text(content, encoding="utf-8", newline="")
        entry.chmod(0o755)
        self._remember(entry)
        logger.info("Registered script %s", entry)
        return entry

    def _remember(self, entry: Path) -> None:
        if entry not in self.run.bin_entries:
            self.run.bin_entries.append(entry)


def _replace(path: Path) -> None:
    """Remove an existing file or symlink so it can be rewritten."""
    if path.is_symlink() or path.is_file():
        path.unlink()


def unregister(entries: list[str] | list[Path], install_dir: Path) -> None:
    """Remove recorded ``bin/`` entries and an engine directory."""
    for entry in entries:
        _replace(Path(entry))
    if install_dir.exists():
        shutil.rmtree(install_dir)
