"""
idlgen runtime - support code imported by generated interface packages.

This package provides:
- primitives: Pubkey, AccountMeta, Instruction, AccountInfo
- borsh: binary codec and the bases of generated structs and enums
- dispatch: the dispatcher protocol used by invoke wrappers
- errors: call-time errors raised by generated code
"""

from .primitives import (
    PUBKEY_BYTES,
    SYSTEM_PROGRAM_ID,
    AccountInfo,
    AccountMeta,
    Instruction,
    Pubkey,
)

from .errors import (
    AccountKeyMismatch,
    AccountPrivilegeError,
    CustomProgramError,
    DecodeError,
    DiscriminatorMismatch,
    EncodeError,
    InvalidAccountData,
    MissingRequiredSignature,
    ProgramError,
)

from .borsh import (
    BOOL,
    BYTES,
    DISCRIMINATOR_LEN,
    F32,
    F64,
    I8,
    I16,
    I32,
    I64,
    I128,
    PUBKEY,
    STRING,
    U8,
    U16,
    U32,
    U64,
    U128,
    Array,
    BorshEnum,
    BorshReader,
    BorshStruct,
    BorshWriter,
    Codec,
    Option,
    Vec,
    zero_copy_view,
)

from .dispatch import Dispatcher, InvokeRecord, RecordingDispatcher

__all__ = [
    # Primitives
    "PUBKEY_BYTES",
    "SYSTEM_PROGRAM_ID",
    "AccountInfo",
    "AccountMeta",
    "Instruction",
    "Pubkey",
    # Errors
    "AccountKeyMismatch",
    "AccountPrivilegeError",
    "CustomProgramError",
    "DecodeError",
    "DiscriminatorMismatch",
    "EncodeError",
    "InvalidAccountData",
    "MissingRequiredSignature",
    "ProgramError",
    # Codec
    "BOOL",
    "BYTES",
    "DISCRIMINATOR_LEN",
    "F32",
    "F64",
    "I8",
    "I16",
    "I32",
    "I64",
    "I128",
    "PUBKEY",
    "STRING",
    "U8",
    "U16",
    "U32",
    "U64",
    "U128",
    "Array",
    "BorshEnum",
    "BorshReader",
    "BorshStruct",
    "BorshWriter",
    "Codec",
    "Option",
    "Vec",
    "zero_copy_view",
    # Dispatch
    "Dispatcher",
    "InvokeRecord",
    "RecordingDispatcher",
]
