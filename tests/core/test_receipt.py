# [TESTER] v1

from __future__ import annotations

import functools

import pytest

from src.core.canonical import encode_uvarint
from src.core.dev_prover import dev_setup, prove_receipt
from src.core.groth16 import PROOF_SIZE
from src.core.identity import ProgramIdentity
from src.core.receipt import (
    RECEIPT_MAGIC,
    ReceiptDecodeError,
    claim_digest,
    claim_public_inputs,
    decode_receipt,
    encode_receipt,
)


IDENTITY = ProgramIdentity.from_words([0x11111111, 2, 3, 4, 5, 6, 7, 0x80000000])
JOURNAL = b"\x01\x00\x00\x00"


@functools.lru_cache(maxsize=None)
def _receipt_bytes() -> bytes:
    _vk, td = dev_setup(b"receipt-tests")
    return encode_receipt(prove_receipt(td, IDENTITY, JOURNAL))


def test_decode_recovers_claim_fields() -> None:
    receipt = decode_receipt(_receipt_bytes())
    assert receipt.image_id == IDENTITY
    assert receipt.exit_code == 0
    assert receipt.journal == JOURNAL
    assert encode_receipt(receipt) == _receipt_bytes()


def test_layout_starts_with_magic_version_and_identity() -> None:
    raw = _receipt_bytes()
    assert raw[:4] == RECEIPT_MAGIC
    assert raw[4] == 1
    assert raw[5:37] == IDENTITY.to_bytes()


def test_rejects_truncation_at_every_length() -> None:
    raw = _receipt_bytes()
    for n in range(len(raw)):
        with pytest.raises(ReceiptDecodeError):
            decode_receipt(raw[:n])


def test_rejects_trailing_bytes() -> None:
    with pytest.raises(ReceiptDecodeError, match="trailing"):
        decode_receipt(_receipt_bytes() + b"\x00")


def test_rejects_bad_magic_and_unknown_version() -> None:
    raw = _receipt_bytes()
    with pytest.raises(ReceiptDecodeError, match="magic"):
        decode_receipt(b"XXXX" + raw[4:])
    with pytest.raises(ReceiptDecodeError, match="version"):
        decode_receipt(raw[:4] + b"\x02" + raw[5:])


def test_rejects_non_minimal_journal_length() -> None:
    raw = _receipt_bytes()
    header = raw[:41]
    # journal length 4 re-encoded with a redundant continuation byte
    body = b"\x84\x00" + raw[42:]
    with pytest.raises(ReceiptDecodeError):
        decode_receipt(header + body)


def test_rejects_seal_of_wrong_size() -> None:
    raw = _receipt_bytes()
    seal_start = 41 + 1 + len(JOURNAL)
    short = raw[:seal_start] + encode_uvarint(PROOF_SIZE - 1) + raw[seal_start + 2 : -1]
    with pytest.raises(ReceiptDecodeError):
        decode_receipt(short)


def test_rejects_journal_over_limit() -> None:
    with pytest.raises(ReceiptDecodeError):
        decode_receipt(_receipt_bytes(), max_journal_bytes=3)


def test_claim_digest_binds_identity_journal_and_exit_code() -> None:
    base = claim_digest(IDENTITY, JOURNAL, 0)
    other_identity = ProgramIdentity.from_words([0] * 8)
    assert claim_digest(other_identity, JOURNAL, 0) != base
    assert claim_digest(IDENTITY, b"\x00\x00\x00\x00", 0) != base
    assert claim_digest(IDENTITY, JOURNAL, 1) != base

    lo, hi = claim_public_inputs(base)
    assert lo.bit_length() <= 128 and hi.bit_length() <= 128
    assert (lo << 128 | hi).to_bytes(32, "big") == base
