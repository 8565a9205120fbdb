#!/usr/bin/env python3
"""
Generate a typed Python interface package from a program IDL.

Usage:
    idlgen <idl_path> [-o <output_dir>] [--output-package-name <name>]
           [-p <program_id>] [-z <type> ...] [--runtime-version <spec>]
           [--write-gitignore]

Example:
    idlgen examples/idl/swap.json -o build/
    idlgen examples/idl/vault.yaml -z VaultState -p TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA
"""

import argparse
import sys
from pathlib import Path

from . import __version__
from .codegen import GeneratorConfig
from .diagnostics import GenerationError
from .idl_loader import load_idl
from .write_package import write_package


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idlgen",
        description="Generate a typed Python interface package from a program IDL",
    )
    parser.add_argument("idl_path", help="IDL document (.json, or YAML for anything else)")
    parser.add_argument("-o", "--output-dir", default=".", help="Directory to write the package to")
    parser.add_argument(
        "--output-package-name",
        help="Name of the generated package (default: <program name>_interface)",
    )
    parser.add_argument(
        "-p", "--program-id",
        help="Program address (default: the IDL address, else the system program)",
    )
    parser.add_argument(
        "-z", "--zero-copy", nargs="+", default=[], metavar="NAME",
        help="Types and accounts that also get a zero-copy ctypes view",
    )
    parser.add_argument(
        "--runtime-version", default=f">={__version__}",
        help="Version specifier of the runtime dependency in the generated manifest",
    )
    parser.add_argument(
        "--write-gitignore", action="store_true",
        help="Write a .gitignore into the generated package directory",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    idl_path = Path(args.idl_path)
    if not idl_path.exists():
        print(f"Error: IDL not found: {idl_path}", file=sys.stderr)
        sys.exit(1)

    config = GeneratorConfig(
        program_id=args.program_id,
        zero_copy=frozenset(args.zero_copy),
        package_name=args.output_package_name,
        runtime_version=args.runtime_version,
        write_gitignore=args.write_gitignore,
    )

    try:
        idl = load_idl(idl_path)
        written, result = write_package(idl, config, args.output_dir, source=idl_path.name)
    except GenerationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    for diag in result.report.warnings:
        print(f"Warning: {diag.entity + ': ' if diag.entity else ''}{diag.message}", file=sys.stderr)
    for path in written:
        print(f"Generated: {path}")
    print(f"\n{idl.program_name}: {len(written)} files, {len(result.report.warnings)} warnings")


if __name__ == "__main__":
    main()
