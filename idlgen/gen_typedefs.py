"""
Typedef codegen: dataclasses with a Borsh layout for every declared struct
and enum, plus ctypes views for zero-copy structs.

The emit helpers here are shared with the accounts engine, which declares
account-shaped types the same way.
"""

from typing import Dict, List, Sequence, Tuple

from .codegen import CodegenModule, ImportSet, comment_lines, docstring_lines, join_blocks
from .diagnostics import ZeroCopyLayoutError
from .idl_ast import EnumKind, EnumVariant, Field, StructKind, TypeKind, TypeRef, kind_field_types
from .naming import PYTHON_KEYWORDS, check_names, conditional_pascal_case, field_name
from .type_resolver import (
    defined_references, resolve, runtime_names, typing_names,
    zero_copy_class_name, defined_type_name, zero_copy_ctype,
)


# Enum attributes a variant alias must not replace
RESERVED_ENUM_ATTRS = frozenset((
    "VARIANTS", "VARIANT_INDEX", "serialize", "to_bytes", "encode", "decode", "from_bytes",
))

# Attributes of generated structs and variants a field must not shadow
RESERVED_FIELD_ATTRS = RESERVED_ENUM_ATTRS | {"_fields", "view"}


def _use_type(imports: ImportSet, ref: TypeRef):
    for name in typing_names(ref):
        imports.add("typing", name)
    imports.add_runtime(*runtime_names(ref))


def _layout_lines(members: Sequence[Tuple[str, TypeRef]], indent: str = "    ") -> List[str]:
    """``_fields()`` static method listing (attribute, codec) pairs in wire order."""
    lines = [f"{indent}@staticmethod", f"{indent}def _fields():"]
    if not members:
        lines.append(f"{indent}    return ()")
        return lines
    lines.append(f"{indent}    return (")
    for attr, ref in members:
        lines.append(f'{indent}        ("{attr}", {resolve(ref).codec}),')
    lines.append(f"{indent}    )")
    return lines


def _check_fields(scope: str, fields: Sequence[Field]):
    check_names(scope, [(f.name, field_name(f.name)) for f in fields], RESERVED_FIELD_ATTRS)


def _field_lines(fields: Sequence[Field]) -> List[str]:
    lines = []
    for f in fields:
        lines.extend(comment_lines(f.docs))
        lines.append(f"    {field_name(f.name)}: {resolve(f.type).annotation}")
    return lines


# =============================================================================
# Structs
# =============================================================================

def struct_lines(name: str, kind: StructKind, docs: Sequence[str], imports: ImportSet,
                 zero_copy: bool = False) -> List[str]:
    class_name = defined_type_name(name)
    imports.add("dataclasses", "dataclass")
    imports.add_runtime("BorshStruct")
    _check_fields(f"fields of {class_name}", kind.fields)
    for f in kind.fields:
        _use_type(imports, f.type)

    lines = ["@dataclass", f"class {class_name}(BorshStruct):"]
    lines.extend(docstring_lines(docs))
    lines.extend(_field_lines(kind.fields))
    if len(lines) > 2:
        lines.append("")
    lines.extend(_layout_lines([(field_name(f.name), f.type) for f in kind.fields]))

    if zero_copy:
        imports.add_runtime("zero_copy_view")
        lines.extend([
            "",
            "    @classmethod",
            "    def view(cls, buf):",
            '        """Zero-copy view of ``buf`` (no decoding, fields are raw ctypes)."""',
            f"        return zero_copy_view({zero_copy_class_name(name)}, buf)",
        ])
    return lines


# =============================================================================
# Enums
# =============================================================================

def _variant_members(variant: EnumVariant) -> List[Tuple[str, TypeRef]]:
    if variant.fields:
        return [(field_name(f.name), f.type) for f in variant.fields]
    return [(f"field_{i}", t) for i, t in enumerate(variant.tuple_fields)]


def enum_blocks(name: str, kind: EnumKind, docs: Sequence[str], imports: ImportSet) -> List[List[str]]:
    """
    Base class, one dataclass per variant, then the variant table. Each
    variant subclasses the base so ``isinstance(v, Enum)`` holds and the
    base decodes any of them.
    """
    class_name = defined_type_name(name)
    imports.add_runtime("BorshEnum")
    check_names(
        f"variants of {class_name}",
        [(v.name, conditional_pascal_case(v.name)) for v in kind.variants],
    )

    base = [f"class {class_name}(BorshEnum):"]
    base.extend(docstring_lines(docs) or ["    pass"])
    blocks = [base]

    variant_classes = []
    for index, variant in enumerate(kind.variants):
        variant_name = conditional_pascal_case(variant.name)
        variant_class = f"{class_name}{variant_name}"
        variant_classes.append((variant_name, variant_class))
        _check_fields(f"fields of {variant_class}", variant.fields)
        imports.add("dataclasses", "dataclass")

        lines = ["@dataclass", f"class {variant_class}({class_name}):", f"    VARIANT_INDEX = {index}"]
        if variant.fields:
            lines.extend(_field_lines(variant.fields))
        for i, t in enumerate(variant.tuple_fields):
            lines.append(f"    field_{i}: {resolve(t).annotation}")
        for t in variant.field_types():
            _use_type(imports, t)
        if not variant.is_unit:
            lines.append("")
            lines.extend(_layout_lines(_variant_members(variant)))
        blocks.append(lines)

    table = []
    if variant_classes:
        table.append(f"{class_name}.VARIANTS = (")
        table.extend(f"    {vc}," for _, vc in variant_classes)
        table.append(")")
    else:
        table.append(f"{class_name}.VARIANTS = ()")
    for variant_name, variant_class in variant_classes:
        if variant_name not in RESERVED_ENUM_ATTRS | PYTHON_KEYWORDS and variant_name.isidentifier():
            table.append(f"{class_name}.{variant_name} = {variant_class}")
    blocks.append(table)
    return blocks


def kind_blocks(name: str, kind: TypeKind, docs: Sequence[str], imports: ImportSet,
                zero_copy: bool = False) -> List[List[str]]:
    if isinstance(kind, StructKind):
        return [struct_lines(name, kind, docs, imports, zero_copy)]
    return enum_blocks(name, kind, docs, imports)


def kind_defined_references(kind: TypeKind) -> set:
    names = set()
    for t in kind_field_types(kind):
        names |= defined_references(t)
    return names


# =============================================================================
# Zero-copy views
# =============================================================================

def zero_copy_lines(name: str, kind: StructKind) -> List[str]:
    """ctypes mirror of a struct's memory layout (packed, little-endian)."""
    lines = [
        f"class {zero_copy_class_name(name)}(ctypes.LittleEndianStructure):",
        "    _pack_ = 1",
        '    _layout_ = "ms"',
    ]
    if not kind.fields:
        lines.append("    _fields_ = []")
        return lines
    lines.append("    _fields_ = [")
    for f in kind.fields:
        lines.append(f'        ("{field_name(f.name)}", {zero_copy_ctype(f.type, name)}),')
    lines.append("    ]")
    return lines


def order_zero_copy(structs: Dict[str, StructKind]) -> List[str]:
    """
    Order zero-copy structs so every view is declared after the views it
    embeds. Only references between the given structs are followed.
    """
    by_class = {defined_type_name(n): n for n in structs}
    ordered: List[str] = []
    state: Dict[str, int] = {}  # 1 = visiting, 2 = done

    def visit(name: str, chain: List[str]):
        if state.get(name) == 2:
            return
        if state.get(name) == 1:
            cycle = " -> ".join(chain[chain.index(name):] + [name])
            raise ZeroCopyLayoutError(f"{name}: zero-copy type contains itself ({cycle})")
        state[name] = 1
        for ref in sorted(kind_defined_references(structs[name])):
            if ref in by_class:
                visit(by_class[ref], chain + [name])
        state[name] = 2
        ordered.append(name)

    for name in structs:
        visit(name, [])
    return ordered


def zero_copy_blocks(structs: Dict[str, StructKind], imports: ImportSet, module: CodegenModule) -> List[List[str]]:
    if not structs:
        return []
    imports.add_module("ctypes")
    blocks = []
    local = {defined_type_name(n) for n in structs}
    for name in order_zero_copy(structs):
        blocks.append(zero_copy_lines(name, structs[name]))
        external = kind_defined_references(structs[name]) - local
        module.import_defined(sorted(external), suffix="ZeroCopy")
    return blocks


# =============================================================================
# Engine
# =============================================================================

class TypedefsCodegenModule(CodegenModule):
    name = "typedefs"

    def local_names(self):
        return {defined_type_name(t.name) for t in self.idl.types or ()}

    def gen_body(self) -> str:
        blocks = []
        zero_copy: Dict[str, StructKind] = {}
        referenced = set()
        check_names(
            "types",
            [(t.name, defined_type_name(t.name)) for t in self.idl.types or ()],
            PYTHON_KEYWORDS,
        )
        for t in self.idl.types or ():
            is_zero_copy = self.is_zero_copy(t.name)
            if is_zero_copy and isinstance(t.kind, EnumKind):
                self.report.info("enums have no zero-copy view", t.name)
                is_zero_copy = False
            blocks.extend(kind_blocks(t.name, t.kind, t.docs, self.imports, is_zero_copy))
            referenced |= kind_defined_references(t.kind)
            if is_zero_copy:
                zero_copy[t.name] = t.kind

        self.import_defined(sorted(referenced - self.local_names()))
        blocks.extend(zero_copy_blocks(zero_copy, self.imports, self))
        return join_blocks(blocks)
