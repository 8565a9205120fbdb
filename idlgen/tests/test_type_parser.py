"""Tests for the type shorthand grammar."""

import pytest

from idlgen.diagnostics import StructuralParseError
from idlgen.idl_ast import ArrayType, DefinedType, OptionType, PrimitiveType, PublicKeyType, VecType
from idlgen.type_parser import parse_type_string


class TestPrimitives:

    def test_primitive(self):
        assert parse_type_string("u64") == PrimitiveType("u64")

    def test_pubkey_names(self):
        assert parse_type_string("pubkey") == PublicKeyType()
        assert parse_type_string("publicKey") == PublicKeyType()

    def test_unknown_name_is_still_parsed(self):
        # Unknown primitives are reported when the type is resolved
        assert parse_type_string("u256") == PrimitiveType("u256")


class TestContainers:

    def test_vec(self):
        assert parse_type_string("vec<u8>") == VecType(PrimitiveType("u8"))
        assert parse_type_string("Vec<u8>") == VecType(PrimitiveType("u8"))

    def test_option(self):
        assert parse_type_string("option<pubkey>") == OptionType(PublicKeyType())

    def test_array(self):
        assert parse_type_string("[u64; 16]") == ArrayType(PrimitiveType("u64"), 16)

    def test_defined(self):
        assert parse_type_string("defined<PoolState>") == DefinedType("PoolState")

    def test_nested(self):
        expected = VecType(OptionType(ArrayType(PrimitiveType("u8"), 32)))
        assert parse_type_string("vec<option<[u8; 32]>>") == expected

    def test_whitespace_ignored(self):
        assert parse_type_string(" vec < u8 > ") == VecType(PrimitiveType("u8"))


class TestErrors:

    @pytest.mark.parametrize("source", [
        "vec<u8",
        "[u8]",
        "option<>",
        "defined<>",
        "u8 u16",
        "",
    ])
    def test_malformed(self, source):
        with pytest.raises(StructuralParseError):
            parse_type_string(source)

    def test_array_length_must_fit_u32(self):
        with pytest.raises(StructuralParseError, match="u32"):
            parse_type_string("[u8; 4294967296]")

    def test_error_carries_path(self):
        with pytest.raises(StructuralParseError) as exc:
            parse_type_string("vec<", "types[0].type.fields[1].type")
        assert exc.value.path == "types[0].type.fields[1].type"
