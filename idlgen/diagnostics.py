"""
Generation errors and the diagnostics report returned alongside output.

Errors abort the whole run: later entities may reference a failed one, so
there is no partial-output mode. Warnings never change the output; they are
collected in a GenerationReport for the caller to print.
"""

from dataclasses import dataclass, field
from typing import List, Sequence


# =============================================================================
# Fatal generation errors
# =============================================================================

class GenerationError(Exception):
    """Base class of every error that aborts generation."""


class StructuralParseError(GenerationError):
    """The IDL document is malformed."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        loc = f"{path}: " if path else ""
        super().__init__(f"{loc}{message}")


class UnknownPrimitiveType(GenerationError):
    """A type name is neither a known primitive nor a defined reference."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown primitive type: {name!r}")


class DuplicateAccountName(GenerationError):
    """Flattening an instruction's accounts produced colliding names."""

    def __init__(self, instruction: str, names: Sequence[str]):
        self.instruction = instruction
        self.names = list(names)
        super().__init__(
            f"Found duplicate accounts for instruction {instruction}: {', '.join(self.names)}"
        )


class DuplicateName(GenerationError):
    """Declared names of one scope map to the same generated identifier."""

    def __init__(self, scope: str, names: Sequence[str]):
        self.scope = scope
        self.names = list(names)
        super().__init__(f"Found duplicate names in {scope}: {', '.join(self.names)}")


class ReservedName(GenerationError):
    """A declared name maps to an identifier the generated code already uses."""

    def __init__(self, scope: str, names: Sequence[str]):
        self.scope = scope
        self.names = list(names)
        super().__init__(f"Names not usable in {scope}: {', '.join(self.names)}")


class ZeroCopyLayoutError(GenerationError):
    """A type marked zero-copy has no fixed-size layout."""


class ConfigError(GenerationError):
    """A configuration value (program id, package name, ...) is invalid."""


# =============================================================================
# Non-fatal diagnostics
# =============================================================================

@dataclass
class Diagnostic:
    """A note about the generated output."""
    message: str
    entity: str = ""
    severity: str = "warning"  # "warning" or "info"

    def __str__(self):
        loc = f"{self.entity}: " if self.entity else ""
        return f"[{self.severity}] {loc}{self.message}"


@dataclass
class GenerationReport:
    """Diagnostics collected during one generation run."""
    warnings: List[Diagnostic] = field(default_factory=list)
    infos: List[Diagnostic] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def warn(self, message: str, entity: str = ""):
        self.warnings.append(Diagnostic(message, entity, "warning"))

    def info(self, message: str, entity: str = ""):
        self.infos.append(Diagnostic(message, entity, "info"))

    def merge(self, other: 'GenerationReport'):
        self.warnings.extend(other.warnings)
        self.infos.extend(other.infos)

    def __str__(self):
        return "\n".join(str(d) for d in self.warnings + self.infos)
