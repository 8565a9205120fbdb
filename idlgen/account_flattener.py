"""
Flatten an instruction's account tree into the ordered list used on the wire.
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Sequence

from .diagnostics import DuplicateAccountName
from .idl_ast import AccountEntry, IxAccount, IxAccountGroup
from .naming import field_name, to_snake_case


@dataclass(frozen=True)
class FlattenedAccount:
    name: str
    writable: bool
    signer: bool
    index: int

    @property
    def field_name(self) -> str:
        return field_name(self.name)

    @property
    def is_privileged(self) -> bool:
        return self.writable or self.signer


def _flatten(entries: Sequence[AccountEntry]) -> List[IxAccount]:
    leaves = []
    for entry in entries:
        if isinstance(entry, IxAccountGroup):
            for child in _flatten(entry.accounts):
                leaves.append(IxAccount(
                    name=f"{entry.name}_{to_snake_case(child.name)}",
                    writable=child.writable,
                    signer=child.signer,
                    docs=child.docs,
                ))
        else:
            leaves.append(entry)
    return leaves


def flatten_accounts(entries: Sequence[AccountEntry]) -> List[FlattenedAccount]:
    """
    Depth-first, left-to-right. Leaves keep their name; children of a group
    are renamed ``<group>_<snake_case(child)>`` at every nesting level.
    """
    return [
        FlattenedAccount(leaf.name, leaf.writable, leaf.signer, i)
        for i, leaf in enumerate(_flatten(entries))
    ]


def duplicate_accounts(accounts: Sequence[FlattenedAccount]) -> List[FlattenedAccount]:
    """Every account whose Python identifier is shared with another one."""
    counts = Counter(a.field_name for a in accounts)
    return [a for a in accounts if counts[a.field_name] > 1]


def check_unique(instruction_name: str, accounts: Sequence[FlattenedAccount]):
    dups = duplicate_accounts(accounts)
    if dups:
        raise DuplicateAccountName(instruction_name, [a.name for a in dups])
