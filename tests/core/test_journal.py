# [TESTER] v1

from __future__ import annotations

import struct

import pytest

from src.core.journal import JournalDecodeError, JournalSchema, decode_journal, encode_journal


def test_bool_journal_decodes_from_a_single_word() -> None:
    schema = JournalSchema.parse("bool")
    assert decode_journal(schema, b"\x01\x00\x00\x00") is True
    assert decode_journal(schema, b"\x00\x00\x00\x00") is False


def test_bool_journal_rejects_values_other_than_zero_and_one() -> None:
    with pytest.raises(JournalDecodeError):
        decode_journal(JournalSchema.parse("bool"), b"\x02\x00\x00\x00")


def test_journal_must_be_consumed_exactly() -> None:
    schema = JournalSchema.parse("u32")
    with pytest.raises(JournalDecodeError):
        decode_journal(schema, b"\x01\x00\x00\x00\x00")
    with pytest.raises(JournalDecodeError):
        decode_journal(schema, b"\x01\x00\x00")


def test_tuple_schema_decodes_fixed_layout() -> None:
    schema = JournalSchema.parse("u32, i64, bool, bytes32")
    digest = bytes(range(32))
    journal = struct.pack("<IqI", 7, -3, 1) + digest
    assert decode_journal(schema, journal) == (7, -3, True, "0x" + digest.hex())
    assert encode_journal(schema, [7, -3, True, "0x" + digest.hex()]) == journal


def test_schema_parse_rejects_unknown_and_empty_fields() -> None:
    with pytest.raises(ValueError):
        JournalSchema.parse("bool,float")
    with pytest.raises(ValueError):
        JournalSchema.parse("bool,,u32")
    assert str(JournalSchema.parse(" BOOL , u64 ")) == "bool,u64"
