"""
Policy Configuration Codec
==========================

Packs the four per-operation proof policies into one 28-bit scalar.

Layout (least significant bit first):
    bits  0-6   Mint
    bits  7-13  Burn
    bits 14-20  Transfer
    bits 21-27  BatchApprove

Within a segment, flag ``k`` of ``PolicyFlag`` lives at bit ``k``.

Usage:
    policy = PackedPolicy.default()
    record = policy.unpack(OperationId.BURN.segment_index)

    updated = policy.replace_segment(
        OperationId.BURN.segment_index,
        record.with_flag(PolicyFlag.SHOULD_VERIFY, True),
    )

Version: 0.1.0
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict

from services.token_ledger.models.errors import ConfigurationError, ErrorCode
from services.token_ledger.models.operations import OperationId


FLAGS_PER_RECORD = 7
RECORD_COUNT = 4
PACKED_BITS = FLAGS_PER_RECORD * RECORD_COUNT
SEGMENT_MASK = (1 << FLAGS_PER_RECORD) - 1


class PolicyFlag(str, Enum):
    """Flags of a policy record, in bit order."""

    SHOULD_VERIFY = "should_verify"
    REQUIRE_RECIPIENT_MATCH = "require_recipient_match"
    REQUIRE_TOKEN_ID_MATCH = "require_token_id_match"
    REQUIRE_NATIVE_BALANCE_MATCH = "require_native_balance_match"
    REQUIRE_TOKEN_BALANCE_MATCH = "require_token_balance_match"
    REQUIRE_NATIVE_NONCE_MATCH = "require_native_nonce_match"
    REQUIRE_TOKEN_NONCE_MATCH = "require_token_nonce_match"

    @property
    def bit(self) -> int:
        return list(PolicyFlag).index(self)

    @classmethod
    def parse(cls, selector: "PolicyFlag | str") -> "PolicyFlag":
        """
        Resolve a flag from its value or member name.

        Raises:
            ConfigurationError: If ``selector`` names no flag
        """
        if isinstance(selector, PolicyFlag):
            return selector
        for flag in cls:
            if selector in (flag.value, flag.name):
                return flag
        raise ConfigurationError(ErrorCode.INVALID_FLAG_SELECTOR, flag=str(selector))


class PolicyRecord(BaseModel):
    """Proof policy of one operation. Match flags are inert while ``should_verify`` is off."""

    model_config = ConfigDict(frozen=True)

    should_verify: bool = False
    require_recipient_match: bool = False
    require_token_id_match: bool = False
    require_native_balance_match: bool = False
    require_token_balance_match: bool = False
    require_native_nonce_match: bool = False
    require_token_nonce_match: bool = False

    def to_bits(self) -> int:
        """7-bit encoding of this record."""
        bits = 0
        for flag in PolicyFlag:
            if getattr(self, flag.value):
                bits |= 1 << flag.bit
        return bits

    @classmethod
    def from_bits(cls, bits: int) -> "PolicyRecord":
        if not 0 <= bits <= SEGMENT_MASK:
            raise ConfigurationError(ErrorCode.INVALID_PACKED_POLICY, bits=bits)
        return cls(**{flag.value: bool(bits >> flag.bit & 1) for flag in PolicyFlag})

    def with_flag(self, flag: PolicyFlag | str, value: bool) -> "PolicyRecord":
        """Copy of this record with a single flag changed."""
        selected = PolicyFlag.parse(flag)
        return self.model_copy(update={selected.value: bool(value)})

    @classmethod
    def default_for(cls, operation_id: OperationId) -> "PolicyRecord":
        """Record a freshly initialized contract uses for ``operation_id``."""
        if operation_id == OperationId.BATCH_APPROVE:
            return cls()
        match_all = {flag.value: True for flag in PolicyFlag if flag != PolicyFlag.SHOULD_VERIFY}
        if operation_id in (OperationId.BURN, OperationId.TRANSFER):
            match_all[PolicyFlag.REQUIRE_TOKEN_NONCE_MATCH.value] = False
        return cls(**match_all)


def _check_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < RECORD_COUNT:
        raise ConfigurationError(ErrorCode.INVALID_POLICY_INDEX, index=index)
    return index


@dataclass(frozen=True)
class PackedPolicy:
    """Four policy records in one 28-bit scalar."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ConfigurationError(ErrorCode.INVALID_PACKED_POLICY, value=self.value)
        if not 0 <= self.value < 1 << PACKED_BITS:
            raise ConfigurationError(ErrorCode.INVALID_PACKED_POLICY, value=self.value)

    @classmethod
    def pack(cls, records: Sequence[PolicyRecord]) -> "PackedPolicy":
        """
        Pack records in segment order (Mint, Burn, Transfer, BatchApprove).

        Raises:
            ConfigurationError: Unless exactly four records are given
        """
        if len(records) != RECORD_COUNT:
            raise ConfigurationError(ErrorCode.INVALID_RECORD_COUNT, count=len(records))
        value = 0
        for index, record in enumerate(records):
            value |= record.to_bits() << (FLAGS_PER_RECORD * index)
        return cls(value)

    @classmethod
    def default(cls) -> "PackedPolicy":
        return cls.pack([PolicyRecord.default_for(op) for op in OperationId])

    def unpack(self, index: int) -> PolicyRecord:
        """Record stored in segment ``index`` (0-3)."""
        shift = FLAGS_PER_RECORD * _check_index(index)
        return PolicyRecord.from_bits(self.value >> shift & SEGMENT_MASK)

    def unpack_all(self) -> list[PolicyRecord]:
        return [self.unpack(index) for index in range(RECORD_COUNT)]

    def record_for(self, operation_id: OperationId) -> PolicyRecord:
        return self.unpack(operation_id.segment_index)

    def replace_segment(self, index: int, record: PolicyRecord) -> "PackedPolicy":
        """New policy equal to this one except in segment ``index``."""
        shift = FLAGS_PER_RECORD * _check_index(index)
        cleared = self.value & ~(SEGMENT_MASK << shift)
        return PackedPolicy(cleared | record.to_bits() << shift)

    def __int__(self) -> int:
        return self.value
