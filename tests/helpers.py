"""
Test helpers — fake binaries, fake artifacts and download stand-ins.
"""

import io
import shutil
import sys
import tarfile
import zipfile
from pathlib import Path

import pytest

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="runs POSIX shell scripts")


def write_script(path: Path, stdout: str, exit_code: int = 0) -> Path:
    """Write an executable sh script that prints ``stdout`` and exits."""
    path.parent.mkdir(parents=True, exist_ok=True)
    quoted = stdout.replace("'", "'\"'\"'")
    path.write_text(f"#!/bin/sh\nprintf '%s\\n' '{quoted}'\nexit {exit_code}\n")
    path.chmod(0o755)
    return path


def build_libjs_artifact(dest: Path, build: str = "Linux-x86_64", output: str = '"42"') -> Path:
    """Build a zip that wraps ladybird-js-<build>.tar.gz, like the CI artifact."""
    staging = dest.parent / "libjs-staging"
    write_script(staging / "bin" / "js", output)
    (staging / "lib" / "nested").mkdir(parents=True, exist_ok=True)
    (staging / "lib" / "liblagom-js.so.0").write_bytes(b"\x7fELF fake")
    (staging / "lib" / "nested" / "libextra.so").write_bytes(b"\x7fELF extra")

    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tf:
        tf.add(staging / "bin", arcname="bin")
        tf.add(staging / "lib", arcname="lib")

    dest.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(dest, "w") as zf:
        zf.writestr(f"ladybird-js-{build}.tar.gz", buf.getvalue())
    shutil.rmtree(staging)
    return dest


def fake_download(source: Path):
    """side_effect for http_client.download_file that copies ``source``."""

    def _download(url, dest, *, token=None, timeout=60):
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, dest)
        return dest

    return _download
