"""
Map schema type references to Python source fragments.

Each reference resolves to a type annotation (``List[int]``) and a codec
expression (``Vec(U64)``) evaluated against the runtime package. The query
functions walk containers recursively so callers can work out which names a
generated module has to import.
"""

from dataclasses import dataclass
from typing import Dict, Set, Tuple

from .diagnostics import UnknownPrimitiveType, ZeroCopyLayoutError
from .idl_ast import (
    ArrayType, DefinedType, OptionType, PrimitiveType, PublicKeyType, VecType,
    TypeRef, walk_type,
)
from .naming import conditional_pascal_case


@dataclass(frozen=True)
class ResolvedType:
    annotation: str
    codec: str


# name -> (annotation, runtime codec constant)
PRIMITIVE_TYPES: Dict[str, Tuple[str, str]] = {
    "u8": ("int", "U8"),
    "u16": ("int", "U16"),
    "u32": ("int", "U32"),
    "u64": ("int", "U64"),
    "u128": ("int", "U128"),
    "i8": ("int", "I8"),
    "i16": ("int", "I16"),
    "i32": ("int", "I32"),
    "i64": ("int", "I64"),
    "i128": ("int", "I128"),
    "bool": ("bool", "BOOL"),
    "f32": ("float", "F32"),
    "f64": ("float", "F64"),
    "string": ("str", "STRING"),
    "bytes": ("bytes", "BYTES"),
}

# Sized primitives and their ctypes layout; 128-bit ints are raw byte arrays
ZERO_COPY_CTYPES: Dict[str, str] = {
    "u8": "ctypes.c_uint8",
    "u16": "ctypes.c_uint16",
    "u32": "ctypes.c_uint32",
    "u64": "ctypes.c_uint64",
    "u128": "(ctypes.c_uint8 * 16)",
    "i8": "ctypes.c_int8",
    "i16": "ctypes.c_int16",
    "i32": "ctypes.c_int32",
    "i64": "ctypes.c_int64",
    "i128": "(ctypes.c_uint8 * 16)",
    "bool": "ctypes.c_bool",
    "f32": "ctypes.c_float",
    "f64": "ctypes.c_double",
}

PUBKEY_CTYPE = "(ctypes.c_uint8 * 32)"


def defined_type_name(name: str) -> str:
    """Class name generated for a declared type."""
    return conditional_pascal_case(name)


def zero_copy_class_name(name: str) -> str:
    return f"{defined_type_name(name)}ZeroCopy"


def resolve(ref: TypeRef) -> ResolvedType:
    if isinstance(ref, PrimitiveType):
        if ref.name not in PRIMITIVE_TYPES:
            raise UnknownPrimitiveType(ref.name)
        annotation, codec = PRIMITIVE_TYPES[ref.name]
        return ResolvedType(annotation, codec)
    if isinstance(ref, PublicKeyType):
        return ResolvedType("Pubkey", "PUBKEY")
    if isinstance(ref, DefinedType):
        name = defined_type_name(ref.name)
        return ResolvedType(name, name)
    if isinstance(ref, ArrayType):
        inner = resolve(ref.element)
        return ResolvedType(f"List[{inner.annotation}]", f"Array({inner.codec}, {ref.length})")
    if isinstance(ref, VecType):
        inner = resolve(ref.element)
        return ResolvedType(f"List[{inner.annotation}]", f"Vec({inner.codec})")
    if isinstance(ref, OptionType):
        inner = resolve(ref.inner)
        return ResolvedType(f"Optional[{inner.annotation}]", f"Option({inner.codec})")
    raise TypeError(f"not a type reference: {ref!r}")


# =============================================================================
# Queries
# =============================================================================

def contains_public_key(ref: TypeRef) -> bool:
    return any(isinstance(t, PublicKeyType) for t in walk_type(ref))


def contains_defined_reference(ref: TypeRef) -> bool:
    return any(isinstance(t, DefinedType) for t in walk_type(ref))


def defined_references(ref: TypeRef) -> Set[str]:
    """Class names of every declared type ``ref`` mentions."""
    return {defined_type_name(t.name) for t in walk_type(ref) if isinstance(t, DefinedType)}


def runtime_names(ref: TypeRef) -> Set[str]:
    """Runtime package names the annotation and codec of ``ref`` use."""
    names = set()
    for t in walk_type(ref):
        if isinstance(t, PrimitiveType):
            names.add(resolve(t).codec)
        elif isinstance(t, PublicKeyType):
            names.update(("Pubkey", "PUBKEY"))
        elif isinstance(t, ArrayType):
            names.add("Array")
        elif isinstance(t, VecType):
            names.add("Vec")
        elif isinstance(t, OptionType):
            names.add("Option")
    return names


def typing_names(ref: TypeRef) -> Set[str]:
    names = set()
    for t in walk_type(ref):
        if isinstance(t, (ArrayType, VecType)):
            names.add("List")
        elif isinstance(t, OptionType):
            names.add("Optional")
    return names


def zero_copy_ctype(ref: TypeRef, owner: str = "") -> str:
    """
    ctypes layout expression for a field of a zero-copy struct.

    Defined references map to the referenced type's view class without
    checking that it has one.
    """
    if isinstance(ref, PrimitiveType):
        if ref.name in ZERO_COPY_CTYPES:
            return ZERO_COPY_CTYPES[ref.name]
        if ref.name not in PRIMITIVE_TYPES:
            raise UnknownPrimitiveType(ref.name)
        raise ZeroCopyLayoutError(f"{owner}: {ref.name} has no fixed-size layout")
    if isinstance(ref, PublicKeyType):
        return PUBKEY_CTYPE
    if isinstance(ref, DefinedType):
        return zero_copy_class_name(ref.name)
    if isinstance(ref, ArrayType):
        return f"({zero_copy_ctype(ref.element, owner)} * {ref.length})"
    kind = "vec" if isinstance(ref, VecType) else "option"
    raise ZeroCopyLayoutError(f"{owner}: {kind} has no fixed-size layout")
