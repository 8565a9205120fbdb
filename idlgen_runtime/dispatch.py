"""
Dispatch primitive handed to the invoke wrappers of a generated interface.

Generated code never executes anything itself: it builds an Instruction and
passes it, together with the account handles in flattened order, to the
dispatcher the caller supplies.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .primitives import AccountInfo, Instruction


class Dispatcher:
    """Executes (or forwards) a built instruction."""

    def invoke(self, instruction: Instruction, account_infos: Sequence[AccountInfo]):
        raise NotImplementedError

    def invoke_signed(
        self,
        instruction: Instruction,
        account_infos: Sequence[AccountInfo],
        signers_seeds: Sequence[Sequence[bytes]],
    ):
        raise NotImplementedError


@dataclass
class InvokeRecord:
    """One call seen by a RecordingDispatcher."""
    instruction: Instruction
    account_infos: List[AccountInfo]
    signers_seeds: Optional[List[List[bytes]]] = None


class RecordingDispatcher(Dispatcher):
    """Dispatcher that only records calls, for tests and dry runs."""

    def __init__(self):
        self.calls: List[InvokeRecord] = []

    def invoke(self, instruction, account_infos):
        self.calls.append(InvokeRecord(instruction, list(account_infos)))

    def invoke_signed(self, instruction, account_infos, signers_seeds):
        seeds = [list(seed) for seed in signers_seeds]
        self.calls.append(InvokeRecord(instruction, list(account_infos), seeds))

    @property
    def last(self) -> InvokeRecord:
        return self.calls[-1]
