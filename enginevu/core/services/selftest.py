"""
Self-test — the correctness gate before an engine counts as installed.

Runs the registered entry point with a fixed one-line program and
requires a zero exit status and an exact stdout match (after removing
the single trailing newline the program prints).
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from enginevu.core.errors import SelfTestError

logger = logging.getLogger(__name__)


def _strip_final_newline(text: str) -> str:
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


def run_self_test(
    engine: str,
    binary: Path,
    args: Sequence[str],
    expected: str,
    *,
    timeout: int = 30,
) -> str:
    """Run ``binary args...`` and compare its stdout to ``expected``.

    Returns:
        The captured stdout (final newline removed).

    Raises:
        SelfTestError: On a non-zero exit or any output mismatch.
        subprocess.TimeoutExpired: If the binary hangs past ``timeout``.
    """
    cmd = [str(binary), *args]
    logger.debug("Self-test: %s", cmd)
    result = subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
    )
    stdout = _strip_final_newline(result.stdout or "")
    if result.returncode != 0 or stdout != expected:
        raise SelfTestError(
            engine,
            expected=expected,
            actual=stdout,
            returncode=result.returncode,
            stderr=result.stderr or "",
        )
    logger.info("%s self-test passed", engine)
    return stdout
