"""
Schema model for a parsed IDL document.

Every node is a frozen dataclass and every sequence a tuple: the model is
built once per run by idl_loader and never mutated afterwards.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union


# =============================================================================
# Type references
# =============================================================================

@dataclass(frozen=True)
class PrimitiveType:
    """Built-in scalar or byte/string type: u64, bool, string, bytes, ..."""
    name: str


@dataclass(frozen=True)
class PublicKeyType:
    """32-byte account address."""


@dataclass(frozen=True)
class DefinedType:
    """Reference by name to a type declared in the IDL."""
    name: str


@dataclass(frozen=True)
class ArrayType:
    """Fixed-length sequence: [element; length]."""
    element: 'TypeRef'
    length: int


@dataclass(frozen=True)
class VecType:
    """Length-prefixed sequence."""
    element: 'TypeRef'


@dataclass(frozen=True)
class OptionType:
    """Nullable value."""
    inner: 'TypeRef'


TypeRef = Union[PrimitiveType, PublicKeyType, DefinedType, ArrayType, VecType, OptionType]


def walk_type(ref: 'TypeRef') -> Iterator['TypeRef']:
    """Yield ``ref`` and every type nested inside it, outermost first."""
    yield ref
    if isinstance(ref, (ArrayType, VecType)):
        yield from walk_type(ref.element)
    elif isinstance(ref, OptionType):
        yield from walk_type(ref.inner)


# =============================================================================
# Named types
# =============================================================================

@dataclass(frozen=True)
class Field:
    """Named, typed member of a struct, enum variant or argument list."""
    name: str
    type: TypeRef
    docs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StructKind:
    fields: Tuple[Field, ...] = ()


@dataclass(frozen=True)
class EnumVariant:
    """
    One enum variant. Unit variants have neither ``fields`` nor
    ``tuple_fields``; named variants use ``fields``; positional variants
    use ``tuple_fields``.
    """
    name: str
    fields: Tuple[Field, ...] = ()
    tuple_fields: Tuple[TypeRef, ...] = ()

    @property
    def is_unit(self) -> bool:
        return not self.fields and not self.tuple_fields

    def field_types(self) -> Tuple[TypeRef, ...]:
        return tuple(f.type for f in self.fields) + self.tuple_fields


@dataclass(frozen=True)
class EnumKind:
    variants: Tuple[EnumVariant, ...] = ()


TypeKind = Union[StructKind, EnumKind]


def kind_field_types(kind: TypeKind) -> Tuple[TypeRef, ...]:
    """Every field type directly declared by a struct or enum."""
    if isinstance(kind, StructKind):
        return tuple(f.type for f in kind.fields)
    types = ()
    for variant in kind.variants:
        types += variant.field_types()
    return types


@dataclass(frozen=True)
class Repr:
    """Declared memory representation, e.g. kind "c", packed."""
    kind: str
    packed: bool = False


ZERO_COPY_SERIALIZATIONS = ("bytemuck", "bytemuckunsafe")


@dataclass(frozen=True)
class NamedType:
    name: str
    kind: TypeKind
    docs: Tuple[str, ...] = ()
    serialization: Optional[str] = None
    repr: Optional[Repr] = None

    @property
    def declares_zero_copy(self) -> bool:
        return self.serialization in ZERO_COPY_SERIALIZATIONS


@dataclass(frozen=True)
class NamedAccount:
    """
    Program-owned account layout.

    ``kind`` is None when the document keeps the layout in its type list
    (the account then only contributes a discriminator and a wrapper).
    """
    name: str
    kind: Optional[TypeKind] = None
    docs: Tuple[str, ...] = ()
    serialization: Optional[str] = None
    discriminator: Optional[bytes] = None

    @property
    def declares_zero_copy(self) -> bool:
        return self.serialization in ZERO_COPY_SERIALIZATIONS


# =============================================================================
# Instructions
# =============================================================================

@dataclass(frozen=True)
class IxAccount:
    """Leaf account reference of an instruction."""
    name: str
    writable: bool = False
    signer: bool = False
    docs: Tuple[str, ...] = ()

    @property
    def is_privileged(self) -> bool:
        return self.writable or self.signer


@dataclass(frozen=True)
class IxAccountGroup:
    """Named group of accounts nested inside an instruction's account list."""
    name: str
    accounts: Tuple['AccountEntry', ...] = ()

    @property
    def is_privileged(self) -> bool:
        return any(entry.is_privileged for entry in self.accounts)


AccountEntry = Union[IxAccount, IxAccountGroup]


@dataclass(frozen=True)
class NamedInstruction:
    name: str
    accounts: Tuple[AccountEntry, ...] = ()
    args: Tuple[Field, ...] = ()
    docs: Tuple[str, ...] = ()
    discriminator: Optional[bytes] = None

    @property
    def has_accounts(self) -> bool:
        return len(self.accounts) > 0

    @property
    def has_args(self) -> bool:
        return len(self.args) > 0

    @property
    def has_privileged_accounts(self) -> bool:
        return any(entry.is_privileged for entry in self.accounts)

    @property
    def args_have_defined_types(self) -> bool:
        return any(isinstance(t, DefinedType) for arg in self.args for t in walk_type(arg.type))

    @property
    def args_have_public_keys(self) -> bool:
        return any(isinstance(t, PublicKeyType) for arg in self.args for t in walk_type(arg.type))


# =============================================================================
# Errors and document root
# =============================================================================

@dataclass(frozen=True)
class ErrorVariant:
    """Program error; its numeric code is its position in the error list."""
    name: str
    msg: Optional[str] = None


@dataclass(frozen=True)
class Metadata:
    name: str
    version: str = ""
    spec: str = ""
    description: str = ""


@dataclass(frozen=True)
class Idl:
    """
    Root of the schema model. A section that is absent from the document
    is None (its module is not generated); an empty section is an empty
    tuple.
    """
    address: Optional[str]
    metadata: Metadata
    accounts: Optional[Tuple[NamedAccount, ...]] = None
    types: Optional[Tuple[NamedType, ...]] = None
    instructions: Optional[Tuple[NamedInstruction, ...]] = None
    errors: Optional[Tuple[ErrorVariant, ...]] = None

    @property
    def program_name(self) -> str:
        return self.metadata.name

    @property
    def program_version(self) -> str:
        return self.metadata.version
