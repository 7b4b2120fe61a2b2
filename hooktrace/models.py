# hooktrace/models.py

import os
import re
from dataclasses import dataclass, field

_PID_SUFFIX = re.compile(r"\.(\d+)$")


@dataclass(frozen=True)
class PackageArtifact:
    """A fetched package: the archive npm produced and the folder it unpacked to.

    Both names are relative to ``work_dir``; ``extracted_folder`` always
    carries a leading ``./``.
    """

    work_dir: str
    package_file: str
    extracted_folder: str

    @property
    def archive_path(self) -> str:
        return os.path.join(self.work_dir, self.package_file)

    @property
    def extracted_path(self) -> str:
        return os.path.normpath(os.path.join(self.work_dir, self.extracted_folder))

    def to_dict(self) -> dict:
        return {
            "work_dir": self.work_dir,
            "package_file": self.package_file,
            "extracted_folder": self.extracted_folder,
        }


@dataclass(frozen=True)
class TraceFile:
    path: str
    size: int
    mtime: float
    mode: int
    pid: int | None = None

    @classmethod
    def from_path(cls, path: str) -> "TraceFile":
        st = os.stat(path)
        m = _PID_SUFFIX.search(path)
        return cls(
            path=path,
            size=st.st_size,
            mtime=st.st_mtime,
            mode=st.st_mode,
            pid=int(m.group(1)) if m else None,
        )

    def to_dict(self) -> dict:
        return {"path": self.path, "size": self.size, "mtime": self.mtime, "mode": self.mode, "pid": self.pid}


@dataclass(frozen=True)
class TraceResult:
    trace_files: tuple
    stdout: str
    stderr: str
    runtime: float  # seconds

    @property
    def trace_bytes(self) -> int:
        return sum(tf.size for tf in self.trace_files)

    def to_dict(self) -> dict:
        return {
            "trace_files": [tf.to_dict() for tf in self.trace_files],
            "stdout": self.stdout,
            "stderr": self.stderr,
            "runtime": self.runtime,
        }


@dataclass(frozen=True)
class HookRun:
    hook: str
    command: str
    result: TraceResult


@dataclass(frozen=True)
class AuditReport:
    package: PackageArtifact
    manifest: dict
    num_dependencies: int | None = None
    hooks: tuple = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.manifest.get("name", "")

    @property
    def version(self) -> str:
        return self.manifest.get("version", "")

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "version": self.version,
            "package": self.package.to_dict(),
            "num_dependencies": self.num_dependencies,
            "hooks": {
                run.hook: {"command": run.command, **run.result.to_dict()}
                for run in self.hooks
            },
        }
