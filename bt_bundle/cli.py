"""Command line entry point: `bt-bundle build` and `bt-bundle compile`."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

from bt_bundle.core.build import build_bundle
from bt_bundle.core.compiler.emitter import compile_bundle
from bt_bundle.core.compiler.models import CompileOptions, parse_requires
from bt_bundle.core.config import load_bundle_config
from bt_bundle.core.errors import BundleError, ConfigurationError
from bt_bundle.core.templates import read_templates


def _parse_requires(items: List[str]) -> Dict[str, Dict[str, str]]:
    """`name=kind:value` pairs, e.g. `jquery=globals:jQuery`, merged per name."""
    out: Dict[str, Dict[str, str]] = {}
    for item in items:
        name, sep, provider = item.partition("=")
        kind, sep2, value = provider.partition(":")
        if not (sep and sep2 and name and kind and value):
            raise ConfigurationError(f"Invalid --require {item!r} (expected name=kind:value)")
        out.setdefault(name.strip(), {})[kind.strip()] = value.strip()
    return out


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else (os.getenv("BT_BUNDLE_LOG_LEVEL") or "WARNING").strip().upper()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _cmd_build(args: argparse.Namespace) -> int:
    root = Path(args.root).resolve()
    config = load_bundle_config(Path(args.config) if args.config else None)
    result = asyncio.run(build_bundle(config, root=root))
    print(f"{result.target} ({result.size} bytes, {result.fragments} templates)")
    return 0


def _cmd_compile(args: argparse.Namespace) -> int:
    output = Path(args.output).resolve()
    bt_options = json.loads(args.bt_options) if args.bt_options else {}

    options = CompileOptions(
        filename=str(output),
        dirname=str(output.parent),
        bt_filename=args.core,
        requires=parse_requires(_parse_requires(args.require)),
        mimic=args.alias,
        scope="template" if args.scope else "none",
        sourcemap=args.sourcemap,
        bt_options=bt_options,
    )

    async def _run() -> str:
        sources = await read_templates(args.templates, root=Path.cwd())
        return await compile_bundle(sources, options)

    code = asyncio.run(_run())

    if args.stdout:
        sys.stdout.write(code)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(code, encoding="utf-8")
        print(f"{output} ({len(code.encode('utf-8'))} bytes)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bt-bundle", description="Compile BT templates into one module.")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="build the target described by a bundle config")
    b.add_argument("--config", help="path to bt-bundle.yaml (default: $BT_BUNDLE_CONFIG or ./bt-bundle.yaml)")
    b.add_argument("--root", default=".", help="directory paths in the config are relative to")
    b.set_defaults(func=_cmd_build)

    c = sub.add_parser("compile", help="compile the given templates")
    c.add_argument("templates", nargs="*", help="template files, in execution order")
    c.add_argument("--output", "-o", required=True, help="path to the compiled file")
    c.add_argument("--core", required=True, help="path to the BT core")
    c.add_argument("--alias", action="append", default=[], help="extra export name (repeatable)")
    c.add_argument("--require", action="append", default=[], help="dependency as name=kind:value (repeatable)")
    c.add_argument("--no-scope", dest="scope", action="store_false", help="do not isolate templates")
    c.add_argument("--sourcemap", action="store_true", help="include an inline source map")
    c.add_argument("--bt-options", help="JSON passed to bt.setOptions()")
    c.add_argument("--stdout", action="store_true", help="print instead of writing --output")
    c.set_defaults(func=_cmd_compile)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return args.func(args)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except json.JSONDecodeError as exc:
        print(f"error: --bt-options is not valid JSON: {exc}", file=sys.stderr)
        return 2
    except BundleError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
