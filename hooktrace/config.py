# hooktrace/config.py

import os

class Settings:
    npm_bin: str = os.getenv("HOOKTRACE_NPM", "npm")
    strace_bin: str = os.getenv("HOOKTRACE_STRACE", "strace")

    work_dir: str = os.getenv("HOOKTRACE_WORK_DIR", ".")
    trace_dir: str = os.getenv("HOOKTRACE_TRACE_DIR", "traces")
    output_csv: str = os.getenv("HOOKTRACE_OUTPUT", "hook_traces.csv")

    registry_url: str = os.getenv("HOOKTRACE_REGISTRY", "https://registry.npmjs.org")
    timeout: int = int(os.getenv("HOOKTRACE_TIMEOUT", "30"))

    # Ceiling applies to stdout and stderr of a traced hook, each on its own
    max_buffer: int = int(os.getenv("HOOKTRACE_MAX_BUFFER", str(50 * 1024 * 1024)))
    strace_string_size: int = int(os.getenv("HOOKTRACE_STRACE_STRSIZE", "8192"))
