"""
Assemble generated modules into an installable Python package on disk.

Layout under the output directory:

    <package>/
        pyproject.toml
        .gitignore              (optional)
        <package>/
            __init__.py         re-exports every section
            program_id.py       PROGRAM_ID
            accounts.py         one file per section present in the IDL
            typedefs.py
            instructions.py
            errors.py
"""

from pathlib import Path
from typing import Dict, List, Tuple

import toml

from idlgen_runtime import Pubkey

from .codegen import GeneratorConfig, GenerationResult, generate_interface
from .diagnostics import ConfigError
from .idl_ast import Idl


SYSTEM_PROGRAM_ADDRESS = "11111111111111111111111111111111"

RUNTIME_DISTRIBUTION = "idlgen"

DEFAULT_VERSION = "0.1.0"

GITIGNORE = "__pycache__/\n*.egg-info/\nbuild/\ndist/\n"

SECTION_TITLES = {
    "accounts": "Accounts",
    "typedefs": "Type definitions",
    "instructions": "Instructions",
    "errors": "Errors",
}


def resolve_program_id(idl: Idl, config: GeneratorConfig) -> str:
    """Override, else the IDL address, else the system program."""
    program_id = config.program_id or idl.address or SYSTEM_PROGRAM_ADDRESS
    try:
        Pubkey.from_string(program_id)
    except ValueError as e:
        raise ConfigError(f"invalid program id {program_id!r}: {e}") from e
    return program_id


def package_name(idl: Idl, config: GeneratorConfig) -> str:
    name = config.output_package_name(idl)
    if not name.isidentifier():
        raise ConfigError(f"package name {name!r} is not a valid Python identifier")
    return name


def render_manifest(idl: Idl, config: GeneratorConfig, name: str) -> str:
    project = {
        "name": name,
        "version": idl.program_version or DEFAULT_VERSION,
        "description": idl.metadata.description or f"Interface to the {idl.program_name} program",
        "dependencies": [f"{RUNTIME_DISTRIBUTION}{config.runtime_version}"],
    }
    manifest = {
        "build-system": {
            "requires": ["setuptools>=61.0"],
            "build-backend": "setuptools.build_meta",
        },
        "project": project,
        "tool": {"setuptools": {"packages": [name]}},
    }
    return toml.dumps(manifest)


def _banner(idl: Idl, title: str, source: str) -> str:
    lines = [f"{idl.program_name}: {title}", ""]
    if source:
        lines.append(f"GENERATED FROM {source}")
    else:
        lines.append("GENERATED")
    return "\n".join(lines)


def render_package(idl: Idl, config: GeneratorConfig, source: str = "") -> Tuple[Dict[str, str], GenerationResult]:
    """
    Generate every file of the package without touching the filesystem.

    Returns a mapping of paths (relative to the output directory) to file
    contents, and the generation result with its diagnostics.
    """
    name = package_name(idl, config)
    program_id = resolve_program_id(idl, config)
    result = generate_interface(idl, config)

    files: Dict[str, str] = {f"{name}/pyproject.toml": render_manifest(idl, config, name)}
    if config.write_gitignore:
        files[f"{name}/.gitignore"] = GITIGNORE

    src = f"{name}/{name}"
    files[f"{src}/program_id.py"] = "\n".join([
        '"""',
        _banner(idl, "program id", source),
        '"""',
        "",
        f"from {config.runtime_package} import Pubkey",
        "",
        "",
        f'PROGRAM_ID = Pubkey.from_string("{program_id}")',
        "",
    ])

    init = ['"""', _banner(idl, "interface package", source), '"""', "", "from .program_id import PROGRAM_ID"]
    for module in result.modules:
        files[f"{src}/{module.name}.py"] = module.render(
            _banner(idl, SECTION_TITLES.get(module.name, module.name), source))
        init.append(f"from .{module.name} import *  # noqa: F401,F403")
    files[f"{src}/__init__.py"] = "\n".join(init) + "\n"
    return files, result


def write_package(idl: Idl, config: GeneratorConfig, output_dir, source: str = "") -> Tuple[List[Path], GenerationResult]:
    """Render the package and write it below ``output_dir``. Nothing is written on error."""
    files, result = render_package(idl, config, source)
    output_dir = Path(output_dir)
    written = []
    for rel, text in files.items():
        path = output_dir / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        written.append(path)
    return written, result
