"""Shared fixtures for hooktrace tests."""

import io
import json
import os
import shutil
import subprocess
import tarfile

import pytest


def write_tarball(path, members: dict) -> str:
    """Create a gzipped tarball at path holding {member_name: text} entries."""
    with tarfile.open(path, "w:gz") as tf:
        for name, text in members.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tf.addfile(info, io.BytesIO(data))
    return str(path)


def package_json(**fields) -> str:
    return json.dumps(fields)


def _strace_works() -> bool:
    if shutil.which("strace") is None:
        return False
    try:
        proc = subprocess.run(["strace", "-o", os.devnull, "true"], capture_output=True)
    except OSError:
        return False
    return proc.returncode == 0


requires_strace = pytest.mark.skipif(not _strace_works(), reason="strace unavailable or ptrace not permitted")


@pytest.fixture
def work_dir(tmp_path):
    d = tmp_path / "work"
    d.mkdir()
    return d
