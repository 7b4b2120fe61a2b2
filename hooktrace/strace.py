# hooktrace/strace.py

import argparse
import glob
import json
import os
import sys
import time

from .config import Settings
from .errors import HookTraceError
from .models import TraceFile, TraceResult
from .process import run_command


_settings = Settings()


def build_strace_command(trace_file_prefix, script_cmd, strace_bin=_settings.strace_bin, string_size=_settings.strace_string_size):
    return [
        strace_bin,
        "-o", trace_file_prefix,
        "-e", "trace=file,network",  # all file and network activity
        f"-s{string_size}",          # how much of each string argument to show
        "-ff",                       # follow children, one file per pid
        "-ttt",                      # microsecond timestamps
        "sh", "-c", script_cmd,
    ]


def list_trace_files(trace_file_prefix: str) -> list[TraceFile]:
    paths = sorted(glob.glob(glob.escape(trace_file_prefix) + "*"))
    return [TraceFile.from_path(p) for p in paths if os.path.isfile(p)]


def clear_trace_files(trace_file_prefix: str) -> int:
    """Remove trace files left under trace_file_prefix by an earlier run."""
    stale = [tf for tf in list_trace_files(trace_file_prefix) if tf.path == f"{trace_file_prefix}.{tf.pid}"]
    for tf in stale:
        os.remove(tf.path)
    if stale:
        print(f"[WARN] Removed {len(stale)} stale trace file(s) for {trace_file_prefix}", file=sys.stderr)
    return len(stale)


def strace_script(
    trace_file_prefix: str,
    script_cmd: str,
    package_dir: str,
    max_buffer: int = _settings.max_buffer,
    strace_bin: str = _settings.strace_bin,
    string_size: int = _settings.strace_string_size,
) -> TraceResult:
    """Run script_cmd through `sh -c` in package_dir with strace attached.

    A relative trace_file_prefix is taken relative to package_dir, which is
    where strace itself resolves it. Trace files already on disk under the
    prefix are removed first so the result only lists this run. Runtime
    covers the whole strace run.
    """
    prefix = os.path.join(os.path.abspath(package_dir), trace_file_prefix)
    clear_trace_files(prefix)
    cmd = build_strace_command(prefix, script_cmd, strace_bin=strace_bin, string_size=string_size)

    start = time.perf_counter()
    proc = run_command(cmd, cwd=package_dir, max_buffer=max_buffer)
    runtime = time.perf_counter() - start

    trace_files = list_trace_files(prefix)
    return TraceResult(trace_files=tuple(trace_files), stdout=proc.stdout, stderr=proc.stderr, runtime=runtime)


def add_arguments(parser):
    parser.add_argument("command", help="Shell command to trace (run via sh -c)")
    parser.add_argument("-C", "--cwd", default=_settings.work_dir, help="Directory to run the command in")
    parser.add_argument("-p", "--prefix", default="trace", help="Trace file prefix; strace appends .<pid>")
    parser.add_argument("--strace", default=_settings.strace_bin, help="strace executable")
    parser.add_argument("--max-buffer", type=int, default=_settings.max_buffer, help="Byte ceiling for stdout/stderr")


def parse_cli():
    p = argparse.ArgumentParser(description="Run a shell command under strace.")
    add_arguments(p)
    return p.parse_args()


def main(args=None):
    if args is None:
        args = parse_cli()

    try:
        result = strace_script(args.prefix, args.command, args.cwd, max_buffer=args.max_buffer, strace_bin=args.strace)
    except HookTraceError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    print(f"[INFO] {len(result.trace_files)} trace file(s) in {result.runtime:.3f}s", file=sys.stderr)
    json.dump(result.to_dict(), sys.stdout, indent=2)
    print()
    return 0


def cli(args=None):
    return main(args)


if __name__ == "__main__":
    sys.exit(main())
