"""
Tests for the policy configuration codec.
"""

import itertools

import pytest

from services.token_ledger.models import ConfigurationError, ErrorCode, OperationId
from services.token_ledger.services.codec import (
    PackedPolicy,
    PolicyFlag,
    PolicyRecord,
)


ALL_ON = PolicyRecord(**{flag.value: True for flag in PolicyFlag})
ALL_OFF = PolicyRecord()


def sample_records() -> list[PolicyRecord]:
    return [
        PolicyRecord.from_bits(0b1010101),
        PolicyRecord.from_bits(0b0000001),
        ALL_ON,
        PolicyRecord.from_bits(0b1100110),
    ]


class TestPolicyRecord:
    """Tests for PolicyRecord."""

    def test_flag_bit_order(self) -> None:
        assert [flag.bit for flag in PolicyFlag] == list(range(7))
        assert PolicyFlag.SHOULD_VERIFY.bit == 0
        assert PolicyFlag.REQUIRE_TOKEN_NONCE_MATCH.bit == 6

    def test_to_bits(self) -> None:
        assert ALL_OFF.to_bits() == 0
        assert ALL_ON.to_bits() == 0b1111111
        assert PolicyRecord(should_verify=True).to_bits() == 1
        assert PolicyRecord(require_recipient_match=True).to_bits() == 2

    def test_bits_roundtrip_all_values(self) -> None:
        for bits in range(128):
            assert PolicyRecord.from_bits(bits).to_bits() == bits

    def test_from_bits_rejects_wide_values(self) -> None:
        with pytest.raises(ConfigurationError):
            PolicyRecord.from_bits(128)

    def test_with_flag(self) -> None:
        record = ALL_OFF.with_flag(PolicyFlag.SHOULD_VERIFY, True)

        assert record.should_verify is True
        assert ALL_OFF.should_verify is False

    def test_with_flag_accepts_names(self) -> None:
        assert ALL_OFF.with_flag("require_token_id_match", True).require_token_id_match
        assert ALL_OFF.with_flag("REQUIRE_TOKEN_ID_MATCH", True).require_token_id_match

    def test_unknown_flag_selector(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            ALL_OFF.with_flag("require_everything", True)

        assert exc_info.value.code == ErrorCode.INVALID_FLAG_SELECTOR

    def test_defaults(self) -> None:
        mint = PolicyRecord.default_for(OperationId.MINT)
        burn = PolicyRecord.default_for(OperationId.BURN)
        transfer = PolicyRecord.default_for(OperationId.TRANSFER)
        batch = PolicyRecord.default_for(OperationId.BATCH_APPROVE)

        assert mint.to_bits() == 0b1111110
        assert burn.to_bits() == 0b0111110
        assert transfer == burn
        assert batch == ALL_OFF
        assert not any(r.should_verify for r in (mint, burn, transfer, batch))


class TestPackedPolicy:
    """Tests for PackedPolicy."""

    def test_segment_layout(self) -> None:
        records = [ALL_OFF] * 4
        records[OperationId.TRANSFER.segment_index] = PolicyRecord(should_verify=True)

        assert PackedPolicy.pack(records).value == 1 << 14

    def test_flag_position(self) -> None:
        for index, flag in itertools.product(range(4), PolicyFlag):
            records = [ALL_OFF] * 4
            records[index] = ALL_OFF.with_flag(flag, True)

            assert PackedPolicy.pack(records).value == 1 << (7 * index + flag.bit)

    def test_pack_unpack_roundtrip(self) -> None:
        records = sample_records()
        policy = PackedPolicy.pack(records)

        assert policy.unpack_all() == records

    def test_unpack_pack_roundtrip(self) -> None:
        for value in (0, 1, 0x0ABCDEF, (1 << 28) - 1):
            policy = PackedPolicy(value)
            assert PackedPolicy.pack(policy.unpack_all()).value == value

    @pytest.mark.parametrize("count", [0, 3, 5])
    def test_pack_requires_four_records(self, count: int) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            PackedPolicy.pack([ALL_OFF] * count)

        assert exc_info.value.code == ErrorCode.INVALID_RECORD_COUNT

    @pytest.mark.parametrize("index", [-1, 4, 7])
    def test_unpack_invalid_index(self, index: int) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            PackedPolicy(0).unpack(index)

        assert exc_info.value.code == ErrorCode.INVALID_POLICY_INDEX

    @pytest.mark.parametrize("value", [-1, 1 << 28])
    def test_out_of_range_scalar(self, value: int) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            PackedPolicy(value)

        assert exc_info.value.code == ErrorCode.INVALID_PACKED_POLICY

    def test_replace_segment_isolation(self) -> None:
        policy = PackedPolicy.pack(sample_records())

        for index in range(4):
            replaced = policy.replace_segment(index, ALL_ON)
            changed = policy.value ^ replaced.value

            assert replaced.unpack(index) == ALL_ON
            assert changed & ~(0x7F << (7 * index)) == 0
            for other in set(range(4)) - {index}:
                assert replaced.unpack(other) == policy.unpack(other)

    def test_replace_segment_does_not_mutate(self) -> None:
        policy = PackedPolicy(0)
        policy.replace_segment(2, ALL_ON)

        assert policy.value == 0

    def test_replace_segment_invalid_index(self) -> None:
        with pytest.raises(ConfigurationError):
            PackedPolicy(0).replace_segment(4, ALL_ON)

    def test_default_policy(self) -> None:
        policy = PackedPolicy.default()

        for op in OperationId:
            assert policy.record_for(op) == PolicyRecord.default_for(op)
        assert policy.value == 0b1111110 | 0b0111110 << 7 | 0b0111110 << 14
