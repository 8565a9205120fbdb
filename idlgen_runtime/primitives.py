"""
Core primitives shared by every generated interface: public keys, account
metadata, account handles and the instruction call descriptor.
"""

from dataclasses import dataclass, field
from typing import List

import base58


PUBKEY_BYTES = 32


# =============================================================================
# Public keys
# =============================================================================

@dataclass(frozen=True, order=True)
class Pubkey:
    """A 32-byte account address, printed in base58."""
    raw: bytes

    def __post_init__(self):
        raw = bytes(self.raw)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"pubkey must be {PUBKEY_BYTES} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def from_string(cls, value: str) -> "Pubkey":
        """Parse a base58 address."""
        try:
            raw = base58.b58decode(value)
        except ValueError as e:
            raise ValueError(f"invalid base58 pubkey: {value!r}") from e
        return cls(raw)

    @classmethod
    def default(cls) -> "Pubkey":
        return cls(bytes(PUBKEY_BYTES))

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return base58.b58encode(self.raw).decode("ascii")

    def __repr__(self) -> str:
        return f"Pubkey({self})"


SYSTEM_PROGRAM_ID = Pubkey.default()


# =============================================================================
# Instructions
# =============================================================================

@dataclass(frozen=True)
class AccountMeta:
    """One entry of an instruction's account list."""
    pubkey: Pubkey
    is_signer: bool
    is_writable: bool


@dataclass
class Instruction:
    """Generic call descriptor: which program, which accounts, what payload."""
    program_id: Pubkey
    accounts: List[AccountMeta] = field(default_factory=list)
    data: bytes = b""


# =============================================================================
# Account handles
# =============================================================================

@dataclass(eq=False)
class AccountInfo:
    """
    Runtime handle to an account as seen by an executing program.

    Flags reflect what the runtime granted for this call, which may differ
    from what an instruction declares; the verify functions of a generated
    interface compare the two.
    """
    key: Pubkey
    is_signer: bool = False
    is_writable: bool = False
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: Pubkey = SYSTEM_PROGRAM_ID
    executable: bool = False
