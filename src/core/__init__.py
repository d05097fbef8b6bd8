"""
Functional core: payload codec, receipt format, Groth16 verification
"""

from .identity import IDENTITY_SIZE, ProgramIdentity
from .payload import (
    CombinedPayload,
    MalformedHex,
    PayloadError,
    PayloadTooLarge,
    PayloadTooSmall,
    decode_combined_payload,
    encode_combined_payload,
    parse_identity,
)
from .receipt import ProofReceipt, ReceiptDecodeError, decode_receipt, encode_receipt
from .journal import JournalDecodeError, JournalSchema, decode_journal, encode_journal
from .groth16 import Groth16Proof, VerifyingKey, verify_groth16
from .outcome import Accepted, ProtocolStatus, Rejected, RejectKind, VerificationOutcome

__all__ = [
    "IDENTITY_SIZE",
    "ProgramIdentity",
    "CombinedPayload",
    "MalformedHex",
    "PayloadError",
    "PayloadTooLarge",
    "PayloadTooSmall",
    "decode_combined_payload",
    "encode_combined_payload",
    "parse_identity",
    "ProofReceipt",
    "ReceiptDecodeError",
    "decode_receipt",
    "encode_receipt",
    "JournalDecodeError",
    "JournalSchema",
    "decode_journal",
    "encode_journal",
    "Groth16Proof",
    "VerifyingKey",
    "verify_groth16",
    "Accepted",
    "ProtocolStatus",
    "Rejected",
    "RejectKind",
    "VerificationOutcome",
]
