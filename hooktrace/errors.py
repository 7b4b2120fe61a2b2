# hooktrace/errors.py

import shlex


class HookTraceError(Exception):
    """Base class for every failure raised by hooktrace."""


class ExtractionError(HookTraceError):
    pass


class AmbiguousExtractionError(ExtractionError):
    def __init__(self, candidates):
        self.candidates = sorted(candidates)
        super().__init__(f"Multiple bundle outputs detected: {', '.join(self.candidates)}")


class CommandError(HookTraceError):
    """An external program exited non-zero or could not be started.

    ``returncode`` is None when the program never ran (missing binary,
    permission denied) or was killed by us before it finished.
    """

    def __init__(self, cmd, returncode, stdout="", stderr="", reason=None):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if reason is None:
            reason = f"exit status {returncode}"
        msg = f"Command failed ({reason}): {shlex.join(self.cmd)}"
        if stderr and stderr.strip():
            msg += f"\nSTDERR: {stderr.strip()}"
        super().__init__(msg)


class OutputOverflowError(CommandError):
    def __init__(self, cmd, stream, limit, stderr=""):
        self.stream = stream
        self.limit = limit
        super().__init__(cmd, None, "", stderr, reason=f"{stream} exceeded {limit} bytes")


class MalformedSummaryError(HookTraceError):
    def __init__(self, text, pattern):
        self.text = text
        self.pattern = pattern
        tail = text.strip().splitlines()[-1] if text.strip() else "<empty>"
        super().__init__(f"Install summary did not match /{pattern}/: {tail}")


class IntegrityError(HookTraceError):
    pass
