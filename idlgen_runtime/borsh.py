"""
Borsh binary codec used by generated interface modules.

Integers are fixed-width little-endian. Vectors, strings and byte strings
carry a u32 length prefix; options a one-byte presence tag; enums a
one-byte variant index. Fixed arrays have no prefix.

A codec is any object with ``encode(value, writer)`` and ``decode(reader)``.
Generated struct and enum classes are codecs themselves (class methods), so
a field layout can name them directly.
"""

import ctypes
import struct
from typing import Any, Tuple

from .errors import DecodeError, EncodeError
from .primitives import PUBKEY_BYTES, Pubkey


DISCRIMINATOR_LEN = 8


# =============================================================================
# Reader / Writer
# =============================================================================

class BorshWriter:
    """Append-only output buffer."""

    def __init__(self):
        self._buf = bytearray()

    def write(self, data: bytes) -> None:
        self._buf.extend(data)

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class BorshReader:
    """Cursor over an input buffer; reading past the end raises DecodeError."""

    def __init__(self, data: bytes, offset: int = 0):
        self._data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def read(self, n: int) -> bytes:
        if n > self.remaining:
            raise DecodeError(
                f"unexpected end of buffer: needed {n} bytes at offset "
                f"{self.offset}, {self.remaining} remaining"
            )
        chunk = self._data[self.offset:self.offset + n]
        self.offset += n
        return chunk


# =============================================================================
# Primitive codecs
# =============================================================================

class Codec:
    """Base class for value codecs."""

    name = "codec"

    def encode(self, value: Any, writer: BorshWriter) -> None:
        raise NotImplementedError

    def decode(self, reader: BorshReader) -> Any:
        raise NotImplementedError

    def __repr__(self):
        return self.name


class FixedInt(Codec):
    """Integer or float that fits a ``struct`` format character."""

    def __init__(self, name: str, fmt: str):
        self.name = name
        self.fmt = fmt
        self.size = struct.calcsize(fmt)

    def encode(self, value, writer):
        if isinstance(value, bool):
            raise EncodeError(f"{self.name}: cannot encode {value!r}")
        try:
            writer.write(struct.pack(self.fmt, value))
        except struct.error as e:
            raise EncodeError(f"{self.name}: cannot encode {value!r}: {e}") from e

    def decode(self, reader):
        return struct.unpack(self.fmt, reader.read(self.size))[0]


class WideInt(Codec):
    """128-bit integer; ``struct`` has no format for it."""

    size = 16

    def __init__(self, name: str, signed: bool):
        self.name = name
        self.signed = signed

    def encode(self, value, writer):
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodeError(f"{self.name}: cannot encode {value!r}")
        try:
            writer.write(value.to_bytes(self.size, "little", signed=self.signed))
        except OverflowError as e:
            raise EncodeError(f"{self.name}: cannot encode {value!r}: {e}") from e

    def decode(self, reader):
        return int.from_bytes(reader.read(self.size), "little", signed=self.signed)


class BoolCodec(Codec):
    name = "bool"

    def encode(self, value, writer):
        if not isinstance(value, bool):
            raise EncodeError(f"bool: cannot encode {value!r}")
        writer.write(b"\x01" if value else b"\x00")

    def decode(self, reader):
        byte = reader.read(1)[0]
        if byte > 1:
            raise DecodeError(f"invalid bool byte {byte}")
        return byte == 1


class PubkeyCodec(Codec):
    name = "pubkey"

    def encode(self, value, writer):
        if not isinstance(value, Pubkey):
            raise EncodeError(f"pubkey: cannot encode {value!r}")
        writer.write(bytes(value))

    def decode(self, reader):
        return Pubkey(reader.read(PUBKEY_BYTES))


class BytesCodec(Codec):
    name = "bytes"

    def encode(self, value, writer):
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise EncodeError(f"bytes: cannot encode {value!r}")
        value = bytes(value)
        U32.encode(len(value), writer)
        writer.write(value)

    def decode(self, reader):
        return reader.read(U32.decode(reader))


class StringCodec(Codec):
    name = "string"

    def encode(self, value, writer):
        if not isinstance(value, str):
            raise EncodeError(f"string: cannot encode {value!r}")
        BYTES.encode(value.encode("utf-8"), writer)

    def decode(self, reader):
        raw = BYTES.decode(reader)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"string is not valid utf-8: {e}") from e


U8 = FixedInt("u8", "<B")
U16 = FixedInt("u16", "<H")
U32 = FixedInt("u32", "<I")
U64 = FixedInt("u64", "<Q")
U128 = WideInt("u128", signed=False)
I8 = FixedInt("i8", "<b")
I16 = FixedInt("i16", "<h")
I32 = FixedInt("i32", "<i")
I64 = FixedInt("i64", "<q")
I128 = WideInt("i128", signed=True)
F32 = FixedInt("f32", "<f")
F64 = FixedInt("f64", "<d")
BOOL = BoolCodec()
PUBKEY = PubkeyCodec()
BYTES = BytesCodec()
STRING = StringCodec()


# =============================================================================
# Container codecs
# =============================================================================

def _items(name: str, value) -> list:
    try:
        return list(value)
    except TypeError as e:
        raise EncodeError(f"{name}: cannot encode {value!r}: {e}") from e


class Vec(Codec):
    """Dynamically sized sequence with a u32 length prefix."""

    def __init__(self, element):
        self.element = element
        self.name = f"Vec({element!r})"

    def encode(self, value, writer):
        items = _items(self.name, value)
        U32.encode(len(items), writer)
        for item in items:
            self.element.encode(item, writer)

    def decode(self, reader):
        length = U32.decode(reader)
        items = []
        for _ in range(length):
            start = reader.offset
            items.append(self.element.decode(reader))
            if reader.offset == start:
                # A length prefix alone could otherwise demand 2**32 decodes
                raise DecodeError(f"{self.name}: elements take no bytes, refusing length {length}")
        return items


class Option(Codec):
    """Nullable value with a one-byte presence tag."""

    def __init__(self, inner):
        self.inner = inner
        self.name = f"Option({inner!r})"

    def encode(self, value, writer):
        if value is None:
            writer.write(b"\x00")
        else:
            writer.write(b"\x01")
            self.inner.encode(value, writer)

    def decode(self, reader):
        tag = reader.read(1)[0]
        if tag == 0:
            return None
        if tag == 1:
            return self.inner.decode(reader)
        raise DecodeError(f"invalid option tag {tag}")


class Array(Codec):
    """Fixed-length sequence; the length is part of the layout, not the data."""

    def __init__(self, element, length: int):
        self.element = element
        self.length = length
        self.name = f"Array({element!r}, {length})"

    def encode(self, value, writer):
        items = _items(self.name, value)
        if len(items) != self.length:
            raise EncodeError(f"{self.name}: expected {self.length} items, got {len(items)}")
        for item in items:
            self.element.encode(item, writer)

    def decode(self, reader):
        return [self.element.decode(reader) for _ in range(self.length)]


# =============================================================================
# Generated type bases
# =============================================================================

class BorshStruct:
    """
    Mixin for generated dataclasses.

    Subclasses declare their wire layout with ``_fields()``, an ordered tuple
    of ``(attribute, codec)`` pairs. The layout is evaluated lazily so fields
    may name types declared later in the module.
    """

    @staticmethod
    def _fields() -> Tuple[Tuple[str, Any], ...]:
        return ()

    def serialize(self, writer: BorshWriter) -> None:
        for name, codec in self._fields():
            codec.encode(getattr(self, name), writer)

    def to_bytes(self) -> bytes:
        writer = BorshWriter()
        self.serialize(writer)
        return writer.getvalue()

    @classmethod
    def encode(cls, value, writer: BorshWriter) -> None:
        if not isinstance(value, cls):
            raise EncodeError(f"{cls.__name__}: cannot encode {value!r}")
        value.serialize(writer)

    @classmethod
    def decode(cls, reader: BorshReader):
        return cls(**{name: codec.decode(reader) for name, codec in cls._fields()})

    @classmethod
    def from_bytes(cls, data: bytes):
        return cls.decode(BorshReader(data))


class BorshEnum(BorshStruct):
    """
    Base for generated enums.

    Each variant is a dataclass subclass carrying ``VARIANT_INDEX``; the
    enum base lists them in declaration order in ``VARIANTS``.
    """

    VARIANTS: Tuple[type, ...] = ()
    VARIANT_INDEX = -1

    def serialize(self, writer: BorshWriter) -> None:
        U8.encode(self.VARIANT_INDEX, writer)
        super().serialize(writer)

    @classmethod
    def decode(cls, reader: BorshReader):
        index = U8.decode(reader)
        if index >= len(cls.VARIANTS):
            raise DecodeError(f"invalid {cls.__name__} variant index {index}")
        variant = cls.VARIANTS[index]
        return variant(**{name: codec.decode(reader) for name, codec in variant._fields()})


# =============================================================================
# Zero-copy views
# =============================================================================

def zero_copy_view(pod_cls, buf):
    """
    Reinterpret ``buf`` as the ctypes structure ``pod_cls`` without decoding.

    Writable buffers (bytearray, writable memoryview) are shared with the
    view; read-only ones are copied first.
    """
    size = ctypes.sizeof(pod_cls)
    if len(buf) < size:
        raise DecodeError(f"{pod_cls.__name__} needs {size} bytes, got {len(buf)}")
    if isinstance(buf, bytearray) or (isinstance(buf, memoryview) and not buf.readonly):
        return pod_cls.from_buffer(buf)
    return pod_cls.from_buffer_copy(buf)
