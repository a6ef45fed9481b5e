"""
Operation Identifiers
=====================

Operations that carry a policy record and a registered verification key.

Version: 0.1.0
"""

from enum import Enum, IntEnum


class OperationId(IntEnum):
    """Key into the packed policy and the verification-key registry."""

    MINT = 1
    BURN = 2
    TRANSFER = 3
    BATCH_APPROVE = 4

    @property
    def segment_index(self) -> int:
        """Index of this operation's 7-bit segment in the packed policy."""
        return self.value - 1


class AuthRequired(str, Enum):
    """Authorization an account setting can demand."""

    NONE = "none"
    SIGNATURE = "signature"
    PROOF = "proof"
    EITHER = "either"
    IMPOSSIBLE = "impossible"


# Stand-in for "no particular account" when a proof has no recipient to match
EMPTY_ADDRESS = ""
