"""
Codegen framework shared by the section engines.

Each engine turns one section of the schema (accounts, types, instructions,
errors) into a GeneratedModule: a head of import statements and a body of
declarations. The body is generated first and records every name it uses
in an ImportSet, so the head imports exactly what the body needs.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

from .diagnostics import GenerationReport
from .idl_ast import Idl
from .naming import to_snake_case
from .type_resolver import defined_type_name


DEFAULT_RUNTIME_PACKAGE = "idlgen_runtime"

LINE_LIMIT = 88


@dataclass(frozen=True)
class GeneratorConfig:
    """Options of one generation run (filled from the command line)."""
    program_id: Optional[str] = None
    zero_copy: FrozenSet[str] = frozenset()
    runtime_package: str = DEFAULT_RUNTIME_PACKAGE
    package_name: Optional[str] = None
    runtime_version: str = ""
    write_gitignore: bool = False

    def output_package_name(self, idl: Idl) -> str:
        if self.package_name:
            return self.package_name
        return f"{to_snake_case(idl.program_name)}_interface"


# =============================================================================
# Generated output
# =============================================================================

@dataclass
class GeneratedModule:
    """Source of one generated module, split into imports and declarations."""
    name: str
    head: str
    body: str

    def render(self, docstring: str = "") -> str:
        parts = []
        if docstring:
            parts.append(f'"""\n{escape_docstring(docstring)}\n"""')
        if self.head:
            parts.append(self.head)
        if self.body:
            parts.append(self.body)
        return "\n\n\n".join(parts) + "\n"


@dataclass
class GenerationResult:
    modules: List[GeneratedModule] = field(default_factory=list)
    report: GenerationReport = field(default_factory=GenerationReport)

    def module(self, name: str) -> Optional[GeneratedModule]:
        for m in self.modules:
            if m.name == name:
                return m
        return None


class ImportSet:
    """
    Imports of one generated module.

    Modules are grouped the usual way: ``__future__``, standard library,
    the runtime package, then relative imports of sibling modules.
    """

    def __init__(self, runtime_package: str = DEFAULT_RUNTIME_PACKAGE):
        self.runtime_package = runtime_package
        self._modules: Set[str] = set()
        self._names: Dict[str, Set[str]] = {}

    def add_module(self, module: str):
        """``import <module>``"""
        self._modules.add(module)

    def add(self, module: str, *names: str):
        """``from <module> import <names>``"""
        self._names.setdefault(module, set()).update(names)

    def add_runtime(self, *names: str):
        self.add(self.runtime_package, *names)

    def names(self, module: str) -> Set[str]:
        return set(self._names.get(module, ()))

    def _group(self, module: str) -> int:
        if module == "__future__":
            return 0
        if module.startswith("."):
            return 3
        if module == self.runtime_package or module.startswith(self.runtime_package + "."):
            return 2
        return 1

    def render(self) -> str:
        groups: Dict[int, List[str]] = {}
        for module in sorted(self._modules):
            groups.setdefault(self._group(module), []).append(f"import {module}")
        for module in sorted(self._names, key=lambda m: (m.startswith("."), m)):
            names = self._names[module]
            if names:
                groups.setdefault(self._group(module), []).append(
                    _from_import(module, sorted(names, key=_import_sort_key)))
        return "\n\n".join("\n".join(groups[g]) for g in sorted(groups))


def _import_sort_key(name: str):
    # Constants first, then classes, then functions
    if name.isupper():
        return (0, name)
    if name[:1].isupper():
        return (1, name)
    return (2, name)


def _from_import(module: str, names: List[str]) -> str:
    line = f"from {module} import {', '.join(names)}"
    if len(line) <= LINE_LIMIT:
        return line
    lines = [f"from {module} import ("]
    lines.extend(f"    {name}," for name in names)
    lines.append(")")
    return "\n".join(lines)


# =============================================================================
# Source helpers
# =============================================================================

def escape_docstring(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')


def docstring_lines(docs, indent: str = "    ") -> List[str]:
    """Docstring for a class or function body; empty when there are no docs."""
    docs = [escape_docstring(d.strip()) for d in docs if d.strip()]
    if not docs:
        return []
    if len(docs) == 1:
        return [f'{indent}"""{docs[0]}"""']
    return [f'{indent}"""'] + [f"{indent}{d}" for d in docs] + [f'{indent}"""']


def comment_lines(docs, indent: str = "    ") -> List[str]:
    return [f"{indent}# {d.strip()}" for d in docs if d.strip()]


def section_banner(title: str) -> List[str]:
    rule = "# " + "=" * 77
    return [rule, f"# {title}", rule, ""]


def join_blocks(blocks: List[List[str]]) -> str:
    """Join top-level declarations with two blank lines between them."""
    return "\n\n\n".join("\n".join(b) for b in blocks if b)


# =============================================================================
# Engine base
# =============================================================================

class CodegenModule:
    """Base of the section engines."""

    name = ""

    def __init__(self, idl: Idl, config: GeneratorConfig, report: GenerationReport):
        self.idl = idl
        self.config = config
        self.report = report
        self.imports = ImportSet(config.runtime_package)

    def gen_body(self) -> str:
        raise NotImplementedError

    def gen_head(self) -> str:
        return self.imports.render()

    def generate(self) -> GeneratedModule:
        self.imports = ImportSet(self.config.runtime_package)
        body = self.gen_body()
        if body:
            self.imports.add("__future__", "annotations")
        return GeneratedModule(self.name, self.gen_head(), body)

    # Where sibling modules declare types, for relative imports
    def declared_in(self, class_name: str) -> Optional[str]:
        for t in self.idl.types or ():
            if defined_type_name(t.name) == class_name:
                return "typedefs"
        for a in self.idl.accounts or ():
            if a.kind is not None and defined_type_name(a.name) == class_name:
                return "accounts"
        return None

    def type_kind(self, name: str):
        for t in self.idl.types or ():
            if t.name == name:
                return t.kind
        return None

    def is_zero_copy(self, name: str) -> bool:
        """
        Zero-copy when configured by name or declared by the type, or by an
        account of the same name that keeps its layout in the type list.
        """
        if name in self.config.zero_copy:
            return True
        for t in self.idl.types or ():
            if t.name == name and t.declares_zero_copy:
                return True
        for a in self.idl.accounts or ():
            if a.name == name and a.declares_zero_copy:
                return True
        return False

    def import_defined(self, class_names, suffix: str = ""):
        """
        Import referenced declared types from the sibling module declaring
        them. Names this module declares itself need no import; unknown names
        are taken from ``typedefs`` so a bad reference fails at import time.
        typedefs never imports from accounts (accounts imports typedefs).
        """
        for class_name in class_names:
            module = self.declared_in(class_name) or "typedefs"
            if module == self.name or (self.name == "typedefs" and module == "accounts"):
                continue
            self.imports.add(f".{module}", f"{class_name}{suffix}")


def codegen_modules(idl: Idl, config: GeneratorConfig, report: GenerationReport) -> List[CodegenModule]:
    """One engine per section present in the document, in output order."""
    from .gen_accounts import AccountsCodegenModule
    from .gen_errors import ErrorsCodegenModule
    from .gen_instructions import InstructionsCodegenModule
    from .gen_typedefs import TypedefsCodegenModule

    modules = []
    if idl.accounts is not None:
        modules.append(AccountsCodegenModule(idl, config, report))
    if idl.types is not None:
        modules.append(TypedefsCodegenModule(idl, config, report))
    if idl.instructions is not None:
        modules.append(InstructionsCodegenModule(idl, config, report))
    if idl.errors is not None:
        modules.append(ErrorsCodegenModule(idl, config, report))
    return modules


def generate_interface(idl: Idl, config: Optional[GeneratorConfig] = None) -> GenerationResult:
    """Run every engine. Any GenerationError aborts the whole run."""
    config = config or GeneratorConfig()
    result = GenerationResult()
    for engine in codegen_modules(idl, config, result.report):
        result.modules.append(engine.generate())
    return result
