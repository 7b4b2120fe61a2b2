# hooktrace/pipeline.py

import argparse
import csv
import json
import os
import sys

import requests

from .config import Settings
from .dependencies import parse_installed_count, resolve_dependencies
from .errors import HookTraceError, MalformedSummaryError
from .hooks import INSTALL_HOOKS, list_registered_hooks, order_hooks
from .models import AuditReport, HookRun
from .npm_pack import load_manifest, npm_pack, pull_package, split_package_spec, unpack_package
from .registry import verify_archive
from .strace import strace_script


_settings = Settings()

CSV_HEADER = [
    "package", "version", "hook", "command", "runtime_s",
    "trace_files", "trace_bytes", "stdout_bytes", "stderr_bytes",
]


def audit_package(
    package_name,
    work_dir,
    trace_dir,
    install_dependencies=True,
    verify_integrity=False,
    only_hooks=None,
    summary_parser=parse_installed_count,
    settings=None,
):
    """Pull a package and run each of its lifecycle hooks under strace.

    Steps run one after another and the first failure aborts the rest.
    Trace files land in trace_dir as <hook>.trace.<pid>.
    """
    settings = settings or _settings
    os.makedirs(work_dir, exist_ok=True)
    os.makedirs(trace_dir, exist_ok=True)
    trace_dir = os.path.abspath(trace_dir)

    print(f"[INFO] Pulling {package_name} into {work_dir}", file=sys.stderr)
    if verify_integrity:
        package_file = npm_pack(package_name, work_dir, npm_bin=settings.npm_bin)
        name, version = split_package_spec(package_name)
        verify_archive(
            os.path.join(work_dir, package_file), name, version,
            registry_url=settings.registry_url, timeout=settings.timeout,
        )
        artifact = unpack_package(package_file, work_dir)
    else:
        artifact = pull_package(package_name, work_dir, npm_bin=settings.npm_bin)
    package_dir = artifact.extracted_path
    manifest = load_manifest(package_dir)

    num_dependencies = None
    if install_dependencies:
        print(f"[INFO] Resolving dependencies in {package_dir}", file=sys.stderr)
        try:
            num_dependencies = resolve_dependencies(
                package_dir, npm_bin=settings.npm_bin, summary_parser=summary_parser,
            )["num_packages"]
        except MalformedSummaryError as e:
            print(f"[WARN] Could not count installed dependencies: {e}", file=sys.stderr)

    hooks = list_registered_hooks(manifest)
    if only_hooks:
        hooks = {k: v for k, v in hooks.items() if k in only_hooks}
    if not hooks:
        print(f"[INFO] {package_name} registers no lifecycle hooks", file=sys.stderr)

    runs = []
    for hook, command in order_hooks(hooks):
        print(f"[INFO] Tracing {hook}: {command}", file=sys.stderr)
        result = strace_script(
            os.path.join(trace_dir, f"{hook}.trace"), command, package_dir,
            max_buffer=settings.max_buffer, strace_bin=settings.strace_bin,
            string_size=settings.strace_string_size,
        )
        print(f"[INFO] {hook} finished in {result.runtime:.3f}s, {len(result.trace_files)} trace file(s)", file=sys.stderr)
        runs.append(HookRun(hook=hook, command=command, result=result))

    return AuditReport(package=artifact, manifest=manifest, num_dependencies=num_dependencies, hooks=tuple(runs))


def report_rows(report):
    for run in report.hooks:
        res = run.result
        yield [
            report.name, report.version, run.hook, run.command, f"{res.runtime:.6f}",
            len(res.trace_files), res.trace_bytes,
            len(res.stdout.encode("utf-8")), len(res.stderr.encode("utf-8")),
        ]


def write_report_csv(report, out):
    writer = csv.writer(out)
    writer.writerow(CSV_HEADER)
    writer.writerows(report_rows(report))


def write_report_json(report, path):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2)


def add_arguments(parser):
    parser.add_argument("package", help="Package spec passed to `npm pack`")
    parser.add_argument("-w", "--work-dir", default=_settings.work_dir, help="Directory to download and extract into")
    parser.add_argument("-t", "--trace-dir", default=_settings.trace_dir, help="Directory for strace output files")
    parser.add_argument("-o", "--output", "--out", dest="output", default=_settings.output_csv,
                        help=f"Summary CSV path, '-' for stdout (default: {_settings.output_csv})")
    parser.add_argument("--json", dest="json_report", help="Also write the full report (incl. hook output) as JSON")
    parser.add_argument("--skip-deps", action="store_true", help="Do not run npm install before tracing hooks")
    parser.add_argument("--verify-integrity", action="store_true", help="Check the archive against the registry digest")
    parser.add_argument("--hooks", help=f"Comma-separated subset of hooks to trace ({','.join(INSTALL_HOOKS)})")


def parse_cli():
    p = argparse.ArgumentParser(description="Trace the lifecycle hooks of an npm package.")
    add_arguments(p)
    return p.parse_args()


def main(args=None):
    if args is None:
        args = parse_cli()

    only_hooks = None
    if args.hooks:
        only_hooks = [h.strip() for h in args.hooks.split(",") if h.strip()]
        unknown = [h for h in only_hooks if h not in INSTALL_HOOKS]
        if unknown:
            print(f"[ERROR] Unknown hook(s): {', '.join(unknown)}", file=sys.stderr)
            return 2

    try:
        report = audit_package(
            args.package, args.work_dir, args.trace_dir,
            install_dependencies=not args.skip_deps,
            verify_integrity=args.verify_integrity,
            only_hooks=only_hooks,
        )
    except (HookTraceError, requests.RequestException, OSError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    try:
        if args.output == "-":
            write_report_csv(report, sys.stdout)
        else:
            with open(args.output, "w", encoding="utf-8", newline="") as f:
                write_report_csv(report, f)
            print(f"[INFO] Done. Results saved to {args.output}", file=sys.stderr)
        if args.json_report:
            write_report_json(report, args.json_report)
            print(f"[INFO] Full report saved to {args.json_report}", file=sys.stderr)
    except OSError as e:
        print(f"[ERROR] Failed to write output: {e}", file=sys.stderr)
        return 1
    return 0


def cli(args=None):
    return main(args)


if __name__ == "__main__":
    sys.exit(main())
