# hooktrace/npm_pack.py

import argparse
import json
import os
import sys
import tarfile

from .config import Settings
from .errors import AmbiguousExtractionError, CommandError, ExtractionError, HookTraceError
from .models import PackageArtifact
from .process import run_command


_settings = Settings()


def npm_pack(package_name: str, work_dir: str, npm_bin: str = _settings.npm_bin, ignore_scripts: bool = True) -> str:
    """Download package_name as a tarball into work_dir and return the archive's file name."""
    cmd = [npm_bin, "pack", package_name]
    if ignore_scripts:
        cmd.append("--ignore-scripts")
    proc = run_command(cmd, cwd=work_dir)
    lines = proc.stdout.strip().splitlines()
    if not lines:
        raise CommandError(cmd, proc.returncode, proc.stdout, proc.stderr, reason="no archive name on stdout")
    return lines[-1].strip()


def extract_tarball(archive_path: str, dest: str) -> None:
    try:
        with tarfile.open(archive_path, mode="r:*") as tf:
            tf.extractall(path=dest, filter="data")
    except (tarfile.TarError, OSError) as e:
        raise ExtractionError(f"Failed to extract {archive_path}: {e}") from e


def split_package_spec(package_name: str):
    """Split an npm package spec into (name, version); version is "latest" when absent."""
    head, sep, version = package_name.rpartition("@")
    if not sep or not head:
        # bare name, or a scoped name with no version ("@scope/pkg")
        return package_name, "latest"
    return head, version or "latest"


def unpack_package(package_file: str, work_dir: str) -> PackageArtifact:
    """Extract an archive already sitting in work_dir.

    The extracted folder is found by diffing the directory listing around
    the extraction, so exactly one new entry must appear.
    """
    precontents = set(os.listdir(work_dir))
    extract_tarball(os.path.join(work_dir, package_file), work_dir)
    postcontents = set(os.listdir(work_dir))

    new_entries = postcontents - precontents
    if len(new_entries) > 1:
        raise AmbiguousExtractionError(new_entries)
    if not new_entries:
        raise ExtractionError(f"Extracting {package_file} produced no new entry in {work_dir}")

    extracted_folder = "./" + new_entries.pop()
    print(f"[INFO] Extracted {package_file} to {extracted_folder}", file=sys.stderr)
    return PackageArtifact(work_dir=work_dir, package_file=package_file, extracted_folder=extracted_folder)


def pull_package(package_name: str, work_dir: str, npm_bin: str = _settings.npm_bin, ignore_scripts: bool = True) -> PackageArtifact:
    """Pull package_name from the registry and extract it into work_dir."""
    package_file = npm_pack(package_name, work_dir, npm_bin=npm_bin, ignore_scripts=ignore_scripts)
    return unpack_package(package_file, work_dir)


def load_manifest(package_dir: str) -> dict:
    """Return the parsed package.json of an extracted package, or {} when it has none."""
    path = os.path.join(package_dir, "package.json")
    if not os.path.isfile(path):
        print(f"[WARN] No package.json in {package_dir}", file=sys.stderr)
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise HookTraceError(f"{path} does not contain a JSON object")
    return data


def add_arguments(parser):
    parser.add_argument("package", help="Package spec passed to `npm pack` (e.g. lodash or lodash@4.17.21)")
    parser.add_argument("-w", "--work-dir", default=_settings.work_dir, help="Directory to download and extract into")
    parser.add_argument("--npm", default=_settings.npm_bin, help="npm executable")
    parser.add_argument("--run-scripts", action="store_true", help="Do not pass --ignore-scripts to npm pack")


def parse_cli():
    p = argparse.ArgumentParser(description="Pull an npm package and extract it.")
    add_arguments(p)
    return p.parse_args()


def main(args=None):
    if args is None:
        args = parse_cli()

    os.makedirs(args.work_dir, exist_ok=True)
    try:
        artifact = pull_package(args.package, args.work_dir, npm_bin=args.npm, ignore_scripts=not args.run_scripts)
    except HookTraceError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    json.dump(artifact.to_dict(), sys.stdout, indent=2)
    print()
    return 0


def cli(args=None):
    return main(args)


if __name__ == "__main__":
    sys.exit(main())
