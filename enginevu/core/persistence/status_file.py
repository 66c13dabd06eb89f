"""
Status file persistence — atomic read/write for InstallStatus.

Status is stored as JSON in <root>/status.json. Writes are atomic
(write to temp file, then rename) so an interrupted install never
leaves a half-written status behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from enginevu.core.models.status import InstallStatus

logger = logging.getLogger(__name__)


def load_status(path: Path) -> InstallStatus:
    """Load install status from a JSON file.

    Args:
        path: Path to the status JSON file.

    Returns:
        InstallStatus model. Missing or unreadable files yield a fresh
        status; the engines on disk are still there, they are just
        no longer tracked.
    """
    if not path.is_file():
        logger.info("No status file at %s — starting fresh", path)
        return InstallStatus()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        status = InstallStatus.model_validate(data)
        logger.debug("Loaded status from %s (updated_at=%s)", path, status.updated_at)
        return status
    except json.JSONDecodeError as e:
        logger.warning("Corrupt status file %s: %s — starting fresh", path, e)
        return InstallStatus()
    except Exception as e:
        logger.warning("Cannot load status from %s: %s — starting fresh", path, e)
        return InstallStatus()


def save_status(status: InstallStatus, path: Path) -> None:
    """Save install status to a JSON file (atomic write).

    Args:
        status: The status to save.
        path: Target path for the status file.
    """
    status.touch()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = status.model_dump(mode="json")
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".status_", suffix=".tmp")
    os.close(fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(content, encoding="utf-8")
        tmp.replace(path)
        logger.debug("Status saved to %s", path)
    except Exception as e:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save status to %s: %s", path, e)
        raise
