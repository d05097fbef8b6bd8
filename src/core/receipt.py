"""
Proof receipt binary format (v1).

Layout:

    magic     4 bytes   b"ZKRC"
    version   1 byte    0x01
    image_id  32 bytes  program identity (8 x u32 little-endian)
    exit_code 4 bytes   u32 little-endian
    journal   uvarint length + bytes
    seal      uvarint length + bytes (a 256-byte Groth16 proof)

Decoding is strict: minimal varints only, no trailing bytes, every point on its
curve. Any deviation from what the producer emits fails closed.

The receipt's claim binds the program identity, the journal and the exit code:

    claim_digest = sha256(domain || image_id || sha256(journal) || exit_code)

and is split into two 128-bit public inputs of the Groth16 statement.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import List

from .canonical import decode_bytes, domain_sep_bytes, encode_bytes, sha256_digest
from .groth16 import PROOF_SIZE, Groth16EncodingError, Groth16Proof
from .identity import IDENTITY_SIZE, ProgramIdentity


RECEIPT_MAGIC = b"ZKRC"
RECEIPT_VERSION = 1
MAX_JOURNAL_BYTES = 1024 * 1024

_HEADER_SIZE = len(RECEIPT_MAGIC) + 1 + IDENTITY_SIZE + 4
_U32 = struct.Struct("<I")


class ReceiptDecodeError(ValueError):
    pass


@dataclass(frozen=True)
class ProofReceipt:
    image_id: ProgramIdentity
    exit_code: int
    journal: bytes
    seal: Groth16Proof


def claim_digest(image_id: ProgramIdentity, journal: bytes, exit_code: int) -> bytes:
    return sha256_digest(
        domain_sep_bytes("receipt_claim", version=RECEIPT_VERSION)
        + image_id.to_bytes()
        + sha256_digest(bytes(journal))
        + _U32.pack(exit_code)
    )


def claim_public_inputs(digest: bytes) -> List[int]:
    if len(digest) != 32:
        raise ValueError("claim digest must be 32 bytes")
    return [int.from_bytes(digest[:16], "big"), int.from_bytes(digest[16:], "big")]


def encode_receipt(receipt: ProofReceipt) -> bytes:
    return (
        RECEIPT_MAGIC
        + bytes([RECEIPT_VERSION])
        + receipt.image_id.to_bytes()
        + _U32.pack(receipt.exit_code)
        + encode_bytes(receipt.journal)
        + encode_bytes(receipt.seal.to_bytes())
    )


def decode_receipt(data: bytes, *, max_journal_bytes: int = MAX_JOURNAL_BYTES) -> ProofReceipt:
    data = bytes(data)
    if len(data) < _HEADER_SIZE:
        raise ReceiptDecodeError(f"receipt truncated: {len(data)} bytes < {_HEADER_SIZE}-byte header")
    if data[:4] != RECEIPT_MAGIC:
        raise ReceiptDecodeError("receipt magic mismatch")
    version = data[4]
    if version != RECEIPT_VERSION:
        raise ReceiptDecodeError(f"unsupported receipt version: {version}")

    pos = 5
    image_id = ProgramIdentity.from_bytes(data[pos : pos + IDENTITY_SIZE])
    pos += IDENTITY_SIZE
    (exit_code,) = _U32.unpack_from(data, pos)
    pos += 4

    try:
        journal, pos = decode_bytes(data, pos, max_len=max_journal_bytes)
        seal_bytes, pos = decode_bytes(data, pos, max_len=PROOF_SIZE)
    except ValueError as exc:
        raise ReceiptDecodeError(f"receipt body malformed: {exc}") from exc
    if pos != len(data):
        raise ReceiptDecodeError(f"receipt has {len(data) - pos} trailing bytes")

    try:
        seal = Groth16Proof.from_bytes(seal_bytes)
    except Groth16EncodingError as exc:
        raise ReceiptDecodeError(f"receipt seal malformed: {exc}") from exc

    return ProofReceipt(image_id=image_id, exit_code=exit_code, journal=journal, seal=seal)
