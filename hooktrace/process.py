# hooktrace/process.py

import os
import selectors
import signal
import subprocess
from dataclasses import dataclass

from .errors import CommandError, OutputOverflowError

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class CompletedCommand:
    cmd: list
    returncode: int
    stdout: str
    stderr: str


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _kill_group(proc):
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


def _read_streams(proc, cmd, max_buffer):
    """Drain stdout and stderr together, failing once either passes max_buffer."""
    names = {proc.stdout: "stdout", proc.stderr: "stderr"}
    chunks = {proc.stdout: [], proc.stderr: []}
    sizes = {proc.stdout: 0, proc.stderr: 0}

    with selectors.DefaultSelector() as sel:
        sel.register(proc.stdout, selectors.EVENT_READ)
        sel.register(proc.stderr, selectors.EVENT_READ)
        while sel.get_map():
            for key, _ in sel.select():
                data = os.read(key.fd, _CHUNK_SIZE)
                if not data:
                    sel.unregister(key.fileobj)
                    continue
                sizes[key.fileobj] += len(data)
                if max_buffer is not None and sizes[key.fileobj] > max_buffer:
                    raise OutputOverflowError(
                        cmd, names[key.fileobj], max_buffer,
                        stderr=_decode(b"".join(chunks[proc.stderr])),
                    )
                chunks[key.fileobj].append(data)

    return b"".join(chunks[proc.stdout]), b"".join(chunks[proc.stderr])


def run_command(cmd, cwd, max_buffer=None) -> CompletedCommand:
    """Run cmd in cwd and return its captured output.

    The child gets its own session so that everything it spawns can be
    killed as a group if we bail out early. No timeout is applied.
    """
    cmd = [str(c) for c in cmd]
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        raise CommandError(cmd, None, reason=str(e)) from e

    with proc:
        try:
            out, err = _read_streams(proc, cmd, max_buffer)
            returncode = proc.wait()
        except BaseException:
            _kill_group(proc)
            raise

    stdout, stderr = _decode(out), _decode(err)
    if returncode != 0:
        raise CommandError(cmd, returncode, stdout, stderr)
    return CompletedCommand(cmd=cmd, returncode=returncode, stdout=stdout, stderr=stderr)
