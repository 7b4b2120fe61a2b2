# hooktrace/main.py

import argparse
import sys

from . import hooks, npm_pack, pipeline, strace


def cli():
    p = argparse.ArgumentParser(prog="hooktrace", description="Trace npm lifecycle hooks with strace")
    sub = p.add_subparsers(dest="cmd", required=True)

    pull_parser = sub.add_parser("pull", help="Pull and extract a package from the registry")
    npm_pack.add_arguments(pull_parser)

    hooks_parser = sub.add_parser("hooks", help="List lifecycle hooks of an extracted package")
    hooks.add_arguments(hooks_parser)

    trace_parser = sub.add_parser("trace", help="Run a single shell command under strace")
    strace.add_arguments(trace_parser)

    audit_parser = sub.add_parser("audit", help="Pull a package and trace every lifecycle hook")
    pipeline.add_arguments(audit_parser)

    args = p.parse_args()

    if args.cmd == "pull":
        return npm_pack.cli(args)
    elif args.cmd == "hooks":
        return hooks.cli(args)
    elif args.cmd == "trace":
        return strace.cli(args)
    elif args.cmd == "audit":
        return pipeline.cli(args)

if __name__ == "__main__":
    sys.exit(cli())
