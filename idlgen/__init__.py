"""
idlgen - typed Python interface generator for program IDLs.

This package provides:
- idl_loader: JSON / YAML IDL documents into the schema model (idl_ast)
- codegen: the section engines (accounts, typedefs, instructions, errors)
- write_package: generated modules assembled into an installable package
- cli: the ``idlgen`` command
"""

__version__ = "0.1.0"

from .diagnostics import (
    GenerationError,
    StructuralParseError,
    UnknownPrimitiveType,
    DuplicateAccountName,
    DuplicateName,
    ReservedName,
    ZeroCopyLayoutError,
    ConfigError,
    Diagnostic,
    GenerationReport,
)

from .idl_loader import load_idl, idl_from_document

from .codegen import (
    GeneratorConfig,
    GeneratedModule,
    GenerationResult,
    generate_interface,
)

from .write_package import render_package, write_package

__all__ = [
    "__version__",
    # Errors and diagnostics
    "GenerationError",
    "StructuralParseError",
    "UnknownPrimitiveType",
    "DuplicateAccountName",
    "DuplicateName",
    "ReservedName",
    "ZeroCopyLayoutError",
    "ConfigError",
    "Diagnostic",
    "GenerationReport",
    # Loading
    "load_idl",
    "idl_from_document",
    # Generation
    "GeneratorConfig",
    "GeneratedModule",
    "GenerationResult",
    "generate_interface",
    "render_package",
    "write_package",
]
