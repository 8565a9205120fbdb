"""
8-byte tags that identify instructions and accounts on the wire.
"""

import hashlib

from .naming import to_pascal_case, to_snake_case


DISCRIMINATOR_LEN = 8


def sighash(namespace: str, name: str) -> bytes:
    """First 8 bytes of sha256("<namespace>:<name>")."""
    return hashlib.sha256(f"{namespace}:{name}".encode("utf-8")).digest()[:DISCRIMINATOR_LEN]


def instruction_discriminator(name: str) -> bytes:
    return sighash("global", to_snake_case(name))


def account_discriminator(name: str) -> bytes:
    return sighash("account", to_pascal_case(name))


def bytes_literal(data: bytes) -> str:
    """Python source for ``data``: ``bytes([1, 2, 3])``."""
    return f"bytes([{', '.join(str(b) for b in data)}])"
