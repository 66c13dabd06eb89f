"""
Archive extraction — zip and tar helpers.

Both helpers refuse members that would land outside the destination
directory. Any other I/O error propagates unmodified.
"""

from __future__ import annotations

import logging
import tarfile
import zipfile
from pathlib import Path

logger = logging.getLogger(__name__)


class UnsafeArchiveError(Exception):
    """An archive member points outside the extraction directory."""


def _check_member(dest: Path, name: str) -> None:
    target = (dest / name).resolve()
    if target != dest and dest not in target.parents:
        raise UnsafeArchiveError(f"Archive member escapes {dest}: {name}")


def unzip(archive: Path, dest: Path) -> Path:
    """Extract a zip archive into ``dest`` (created if missing).

    Zip files do not carry POSIX modes through ``extractall``; the
    mode bits stored in the external attributes are re-applied.
    """
    dest.mkdir(parents=True, exist_ok=True)
    dest = dest.resolve()
    logger.debug("Unzipping %s → %s", archive, dest)
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            _check_member(dest, info.filename)
        zf.extractall(dest)
        for info in zf.infolist():
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir():
                (dest / info.filename).chmod(mode)
    return dest


def untar(archive: Path, dest: Path) -> Path:
    """Extract a (possibly compressed) tarball into ``dest``."""
    dest.mkdir(parents=True, exist_ok=True)
    dest = dest.resolve()
    logger.debug("Untarring %s → %s", archive, dest)
    with tarfile.open(archive, "r:*") as tf:
        for member in tf.getmembers():
            _check_member(dest, member.name)
        # "tar" filter keeps exec bits and rejects links pointing outside dest
        tf.extractall(dest, filter="tar")
    return dest
