# hooktrace/hooks.py

import argparse
import json
import sys

from .errors import HookTraceError
from .npm_pack import load_manifest

# Hooks a package can register for auto execution, in lifecycle order
INSTALL_HOOKS = (
    "preinstall", "install", "postinstall",
    "preuninstall", "uninstall", "postuninstall",
)


def list_registered_hooks(manifest) -> dict:
    """Return {hook: command} for the lifecycle hooks the manifest registers."""
    scripts = (manifest or {}).get("scripts") or {}
    return {k: v for k, v in scripts.items() if k in INSTALL_HOOKS}


def order_hooks(hooks: dict):
    """Yield (hook, command) pairs in the order npm would run them."""
    for name in INSTALL_HOOKS:
        if name in hooks:
            yield name, hooks[name]


def add_arguments(parser):
    parser.add_argument("package_dir", help="Extracted package directory containing package.json")


def parse_cli():
    p = argparse.ArgumentParser(description="List lifecycle hooks registered by a package.")
    add_arguments(p)
    return p.parse_args()


def main(args=None):
    if args is None:
        args = parse_cli()

    try:
        manifest = load_manifest(args.package_dir)
    except (HookTraceError, ValueError, OSError) as e:
        print(f"[ERROR] Failed to read manifest: {e}", file=sys.stderr)
        return 1

    hooks = dict(order_hooks(list_registered_hooks(manifest)))
    if not hooks:
        print("[INFO] No lifecycle hooks registered", file=sys.stderr)
    json.dump(hooks, sys.stdout, indent=2)
    print()
    return 0


def cli(args=None):
    return main(args)


if __name__ == "__main__":
    sys.exit(main())
