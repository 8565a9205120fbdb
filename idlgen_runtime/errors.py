"""
Errors raised by generated interface modules at call time.

None of these are fatal: they are ordinary results for the caller of a
generated interface (bad payload, wrong account passed, missing privilege).
"""


# =============================================================================
# Codec errors
# =============================================================================

class DecodeError(ValueError):
    """Raised when a buffer is truncated or holds an invalid encoding."""


class EncodeError(ValueError):
    """Raised when a value cannot be encoded with its declared layout."""


class DiscriminatorMismatch(DecodeError):
    """Raised when the leading 8-byte tag of a payload is not the expected one."""

    def __init__(self, expected: bytes, actual: bytes):
        self.expected = bytes(expected)
        self.actual = bytes(actual)
        super().__init__(
            f"discm does not match. Expected: {list(self.expected)}. "
            f"Received: {list(self.actual)}"
        )


# =============================================================================
# Program errors
# =============================================================================

class ProgramError(Exception):
    """Error code a program hands back to its caller."""

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)


class InvalidAccountData(ProgramError):
    """An account's data or flags were not what the instruction expects."""


class MissingRequiredSignature(ProgramError):
    """An account that must sign the instruction did not."""


class CustomProgramError(ProgramError):
    """Program-specific error identified by a numeric code."""

    def __init__(self, code: int, message: str = ""):
        self.code = code
        super().__init__(message or f"custom program error: {code:#x}")

    def __eq__(self, other):
        if not isinstance(other, CustomProgramError):
            return NotImplemented
        return self.code == other.code

    def __hash__(self):
        return hash((CustomProgramError, self.code))


# =============================================================================
# Verification errors
# =============================================================================

class AccountKeyMismatch(Exception):
    """An account handle does not carry the expected public key."""

    def __init__(self, actual, expected):
        self.actual = actual
        self.expected = expected
        super().__init__(f"account key mismatch: actual {actual}, expected {expected}")


class AccountPrivilegeError(Exception):
    """An account handle lacks a privilege (writable or signer) it must have."""

    def __init__(self, account, error: ProgramError):
        self.account = account
        self.error = error
        super().__init__(f"{account.key}: {error}")
