# hooktrace/dependencies.py

import re
import sys

from .config import Settings
from .errors import MalformedSummaryError
from .process import run_command


_settings = Settings()

# Number of installed packages from `npm install` stdout. npm 6 prints
# "added N packages from M contributors", npm 7+ "added N packages in 2s" or
# "added N packages, and audited ...".
RE_NUM_PACKAGES = re.compile(r"added (\d+) packages?(?: from|, and audited| in)")
# Nothing left to install
RE_UP_TO_DATE = re.compile(r"^up to date\b", re.MULTILINE)

NPM_INSTALL_FLAGS = [
    "--no-audit",        # skip the audit round trip
    "--no-package-lock", # don't write package-lock.json
    "--only=prod",       # production dependencies only
    "--legacy-bundling", # don't deduplicate nested dependencies
]


def parse_installed_count(stdout: str, pattern=RE_NUM_PACKAGES) -> int:
    m = pattern.search(stdout)
    if m:
        return int(m.group(1))
    if RE_UP_TO_DATE.search(stdout):
        return 0
    raise MalformedSummaryError(stdout, pattern.pattern)


def resolve_dependencies(package_dir: str, npm_bin: str = _settings.npm_bin, summary_parser=parse_installed_count) -> dict:
    """Install the production dependencies declared in package_dir/package.json.

    summary_parser turns npm's stdout into a package count and raises
    MalformedSummaryError when it can't.

    NOTE: this runs the install scripts of the package's dependencies, untraced.
    """
    proc = run_command([npm_bin, "install", *NPM_INSTALL_FLAGS], cwd=package_dir)
    num_packages = summary_parser(proc.stdout)
    print(f"[INFO] Installed {num_packages} dependencies in {package_dir}", file=sys.stderr)
    return {"num_packages": num_packages}
