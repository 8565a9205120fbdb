"""
Load an IDL document (JSON or YAML) into the schema model.

Only structure is checked here: required keys, value shapes and type
syntax. Names are not resolved and duplicates across sections are not
reported; the codegen engines catch what they depend on.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .diagnostics import StructuralParseError
from .idl_ast import (
    Idl, Metadata, NamedAccount, NamedType, NamedInstruction, ErrorVariant,
    Field, StructKind, EnumKind, EnumVariant, Repr, TypeKind,
    IxAccount, IxAccountGroup, AccountEntry,
    ArrayType, DefinedType, OptionType, VecType, TypeRef,
)
from .type_parser import MAX_ARRAY_LEN, parse_type_string


def load_idl(path) -> Idl:
    """Read and parse an IDL file. ``.json`` files use json, anything else YAML."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"IDL not found: {path}")

    text = path.read_text()
    try:
        if path.suffix == ".json":
            doc = json.loads(text)
        else:
            doc = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise StructuralParseError(f"cannot parse {path.name}: {e}") from e

    return idl_from_document(doc)


def idl_from_document(doc: Any) -> Idl:
    """Build the schema model from an already-decoded document."""
    _expect(doc, dict, "")

    metadata_doc = doc.get("metadata")
    if metadata_doc is not None:
        _expect(metadata_doc, dict, "metadata")
        metadata = Metadata(
            name=_required_str(metadata_doc, "name", "metadata"),
            version=_optional_str(metadata_doc, "version", "metadata") or "",
            spec=_optional_str(metadata_doc, "spec", "metadata") or "",
            description=_optional_str(metadata_doc, "description", "metadata") or "",
        )
        address = doc.get("address", metadata_doc.get("address"))
    else:
        # Legacy layout: name and version at the top level
        metadata = Metadata(
            name=_required_str(doc, "name", ""),
            version=_optional_str(doc, "version", "") or "",
        )
        address = doc.get("address")
    if address is not None and not isinstance(address, str):
        raise StructuralParseError("address must be a string", "address")

    return Idl(
        address=address,
        metadata=metadata,
        accounts=_section(doc, "accounts", parse_named_account),
        types=_section(doc, "types", parse_named_type),
        instructions=_section(doc, "instructions", parse_instruction),
        errors=_section(doc, "errors", parse_error_variant),
    )


# =============================================================================
# Sections
# =============================================================================

def _section(doc: dict, key: str, parse_item) -> Optional[Tuple]:
    items = doc.get(key)
    if items is None:
        return None
    _expect(items, list, key)
    return tuple(parse_item(item, f"{key}[{i}]") for i, item in enumerate(items))


def parse_named_type(item: Any, path: str) -> NamedType:
    _expect(item, dict, path)
    repr_doc = item.get("repr")
    repr_ = None
    if repr_doc is not None:
        _expect(repr_doc, dict, f"{path}.repr")
        repr_ = Repr(
            kind=_required_str(repr_doc, "kind", f"{path}.repr"),
            packed=bool(repr_doc.get("packed", False)),
        )
    return NamedType(
        name=_required_str(item, "name", path),
        kind=parse_type_kind(_required(item, "type", path), f"{path}.type"),
        docs=_docs(item, path),
        serialization=_optional_str(item, "serialization", path),
        repr=repr_,
    )


def parse_named_account(item: Any, path: str) -> NamedAccount:
    _expect(item, dict, path)
    kind = None
    if "type" in item:
        kind = parse_type_kind(item["type"], f"{path}.type")
    return NamedAccount(
        name=_required_str(item, "name", path),
        kind=kind,
        docs=_docs(item, path),
        serialization=_optional_str(item, "serialization", path),
        discriminator=_discriminator(item, path),
    )


def parse_instruction(item: Any, path: str) -> NamedInstruction:
    _expect(item, dict, path)
    accounts = item.get("accounts") or []
    _expect(accounts, list, f"{path}.accounts")
    args = item.get("args") or []
    _expect(args, list, f"{path}.args")
    return NamedInstruction(
        name=_required_str(item, "name", path),
        accounts=tuple(
            parse_account_entry(a, f"{path}.accounts[{i}]") for i, a in enumerate(accounts)
        ),
        args=tuple(parse_field(a, f"{path}.args[{i}]") for i, a in enumerate(args)),
        docs=_docs(item, path),
        discriminator=_discriminator(item, path),
    )


def parse_account_entry(item: Any, path: str) -> AccountEntry:
    """An entry with an ``accounts`` list is a nested group, anything else a leaf."""
    _expect(item, dict, path)
    name = _required_str(item, "name", path)
    if "accounts" in item:
        children = item["accounts"]
        _expect(children, list, f"{path}.accounts")
        return IxAccountGroup(
            name=name,
            accounts=tuple(
                parse_account_entry(c, f"{path}.accounts[{i}]") for i, c in enumerate(children)
            ),
        )
    return IxAccount(
        name=name,
        writable=_flag(item, ("writable", "isMut"), path),
        signer=_flag(item, ("signer", "isSigner"), path),
        docs=_docs(item, path),
    )


def parse_error_variant(item: Any, path: str) -> ErrorVariant:
    _expect(item, dict, path)
    return ErrorVariant(
        name=_required_str(item, "name", path),
        msg=_optional_str(item, "msg", path),
    )


# =============================================================================
# Types
# =============================================================================

def parse_type_kind(item: Any, path: str) -> TypeKind:
    _expect(item, dict, path)
    kind = item.get("kind")
    if kind == "struct":
        fields = item.get("fields") or []
        _expect(fields, list, f"{path}.fields")
        return StructKind(tuple(
            parse_field(f, f"{path}.fields[{i}]") for i, f in enumerate(fields)
        ))
    if kind == "enum":
        variants = item.get("variants") or []
        _expect(variants, list, f"{path}.variants")
        return EnumKind(tuple(
            parse_enum_variant(v, f"{path}.variants[{i}]") for i, v in enumerate(variants)
        ))
    raise StructuralParseError(f"unsupported type kind {kind!r}", path)


def parse_enum_variant(item: Any, path: str) -> EnumVariant:
    _expect(item, dict, path)
    name = _required_str(item, "name", path)
    fields = item.get("fields")
    if not fields:
        return EnumVariant(name)
    _expect(fields, list, f"{path}.fields")
    # Named fields are objects with a "name"; positional fields are bare types
    if all(isinstance(f, dict) and "name" in f for f in fields):
        return EnumVariant(name, fields=tuple(
            parse_field(f, f"{path}.fields[{i}]") for i, f in enumerate(fields)
        ))
    return EnumVariant(name, tuple_fields=tuple(
        parse_type(f, f"{path}.fields[{i}]") for i, f in enumerate(fields)
    ))


def parse_field(item: Any, path: str) -> Field:
    _expect(item, dict, path)
    return Field(
        name=_required_str(item, "name", path),
        type=parse_type(_required(item, "type", path), f"{path}.type"),
        docs=_docs(item, path),
    )


def parse_type(item: Any, path: str, _parents: Tuple[int, ...] = ()) -> TypeRef:
    """
    Parse one type reference (string or single-key object).

    YAML aliases can make a type object contain itself; that is rejected
    instead of recursing forever.
    """
    if isinstance(item, str):
        return parse_type_string(item, path)
    _expect(item, dict, path)
    if id(item) in _parents:
        raise StructuralParseError("type reference contains itself", path)
    _parents = _parents + (id(item),)
    if len(item) != 1:
        raise StructuralParseError(f"type object must have exactly one key, got {sorted(item)}", path)
    key, value = next(iter(item.items()))

    if key == "defined":
        if isinstance(value, dict):
            value = _required(value, "name", f"{path}.defined")
        _expect(value, str, f"{path}.defined")
        return DefinedType(value)
    if key == "array":
        if not isinstance(value, list) or len(value) != 2:
            raise StructuralParseError("array must be [type, length]", f"{path}.array")
        element, length = value
        if isinstance(length, bool) or not isinstance(length, int) or not 0 <= length <= MAX_ARRAY_LEN:
            raise StructuralParseError(f"array length must be a u32, got {length!r}", f"{path}.array")
        return ArrayType(parse_type(element, f"{path}.array[0]", _parents), length)
    if key == "vec":
        return VecType(parse_type(value, f"{path}.vec", _parents))
    if key == "option":
        return OptionType(parse_type(value, f"{path}.option", _parents))
    raise StructuralParseError(f"unsupported type {key!r}", path)


# =============================================================================
# Helpers
# =============================================================================

_TYPE_NAMES = {dict: "an object", list: "a list", str: "a string"}


def _expect(value: Any, expected: type, path: str):
    if not isinstance(value, expected):
        what = _TYPE_NAMES.get(expected, expected.__name__)
        raise StructuralParseError(f"expected {what}, got {type(value).__name__}", path)


def _required(item: Dict[str, Any], key: str, path: str) -> Any:
    if key not in item:
        raise StructuralParseError(f"missing required key {key!r}", path)
    return item[key]


def _required_str(item: Dict[str, Any], key: str, path: str) -> str:
    value = _required(item, key, path)
    _expect(value, str, f"{path}.{key}" if path else key)
    return value


def _optional_str(item: Dict[str, Any], key: str, path: str) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    # YAML turns versions like 0.1 into floats
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    _expect(value, str, f"{path}.{key}" if path else key)
    return value


def _flag(item: Dict[str, Any], keys: Tuple[str, ...], path: str) -> bool:
    for key in keys:
        if key in item:
            value = item[key]
            if not isinstance(value, bool):
                raise StructuralParseError(f"{key} must be a boolean", path)
            return value
    return False


def _docs(item: Dict[str, Any], path: str) -> Tuple[str, ...]:
    docs = item.get("docs")
    if docs is None:
        return ()
    if isinstance(docs, str):
        return (docs,)
    _expect(docs, list, f"{path}.docs")
    return tuple(str(d) for d in docs)


def _discriminator(item: Dict[str, Any], path: str) -> Optional[bytes]:
    value = item.get("discriminator")
    if value is None:
        return None
    if (not isinstance(value, list) or len(value) != 8
            or not all(isinstance(b, int) and 0 <= b <= 255 for b in value)):
        raise StructuralParseError("discriminator must be a list of 8 bytes", f"{path}.discriminator")
    return bytes(value)
