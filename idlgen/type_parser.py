"""
Lark grammar for type strings in hand-written IDL documents.

Besides plain primitive names ("u64", "pubkey") a type may be written in
shorthand:

    vec<u8>            option<pubkey>
    [u64; 16]          defined<PoolState>
    vec<option<[u8; 32]>>
"""

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError

from .diagnostics import StructuralParseError
from .idl_ast import ArrayType, DefinedType, OptionType, PrimitiveType, PublicKeyType, VecType


PUBKEY_NAMES = ("pubkey", "publicKey")

MAX_ARRAY_LEN = 0xFFFFFFFF  # array lengths are u32 on the wire


GRAMMAR = r"""
?type_ref: array
         | vec
         | option
         | defined
         | primitive

array: "[" type_ref ";" INT "]"
vec: ("vec" | "Vec") "<" type_ref ">"
option: ("option" | "Option") "<" type_ref ">"
defined: "defined" "<" NAME ">"
primitive: NAME

NAME: /[A-Za-z_][A-Za-z0-9_]*/

%import common.INT
%import common.WS
%ignore WS
"""


def primitive_or_pubkey(name: str):
    if name in PUBKEY_NAMES:
        return PublicKeyType()
    return PrimitiveType(name)


@v_args(inline=True)
class TypeTransformer(Transformer):
    """Transform the Lark parse tree into TypeRef nodes."""

    def array(self, element, length):
        n = int(length)
        if n > MAX_ARRAY_LEN:
            raise ValueError(f"array length {n} does not fit in u32")
        return ArrayType(element, n)

    def vec(self, element):
        return VecType(element)

    def option(self, inner):
        return OptionType(inner)

    def defined(self, name):
        return DefinedType(str(name))

    def primitive(self, name):
        return primitive_or_pubkey(str(name))


_parser = Lark(GRAMMAR, start="type_ref", parser="lalr")


def parse_type_string(source: str, path: str = ""):
    """Parse a type string into a TypeRef; malformed input raises StructuralParseError."""
    try:
        tree = _parser.parse(source)
        return TypeTransformer().transform(tree)
    except UnexpectedInput as e:
        raise StructuralParseError(f"invalid type {source!r}: {e}", path) from e
    except VisitError as e:
        raise StructuralParseError(f"invalid type {source!r}: {e.orig_exc}", path) from e
