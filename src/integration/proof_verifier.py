"""
Proof verification (imperative shell around the functional core).

Design goals:
- Deterministic, fail-closed verification: the outcome is a pure function of
  (receipt bytes, configured identity, backend key material, journal schema).
- Attacker-controlled bytes never raise out of `verify`; every failure becomes
  a `Rejected` with a distinguishable `RejectKind`.
- The payload's trailing identity is diagnostic only. It is logged when it
  disagrees with the configured identity and never influences acceptance.

Backends:
- `groth16`: receipts in the `src.core.receipt` format, checked with an
  in-process BN254 pairing against a configured verifying key.
- `risc0`: segment receipts exactly as the RISC Zero prover serializes them,
  checked through the `pyr0` bindings (optional `risc0` extra).
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..core.groth16 import VerifyingKey, verify_groth16
from ..core.identity import ProgramIdentity
from ..core.journal import JournalDecodeError, JournalSchema, decode_journal
from ..core.outcome import Accepted, Rejected, RejectKind, VerificationOutcome
from ..core.payload import DEFAULT_MAX_PAYLOAD_BYTES, PayloadError, claimed_len, decode, parse_identity, split
from ..core.receipt import MAX_JOURNAL_BYTES, ReceiptDecodeError, claim_digest, claim_public_inputs, decode_receipt


logger = logging.getLogger(__name__)

BACKEND_GROTH16 = "groth16"
BACKEND_RISC0 = "risc0"
BACKENDS = (BACKEND_GROTH16, BACKEND_RISC0)


@dataclass(frozen=True)
class ProofVerifierConfig:
    backend: str = BACKEND_GROTH16
    program_identity: Optional[ProgramIdentity] = None
    verifying_key: Optional[VerifyingKey] = None
    journal_schema: JournalSchema = field(default_factory=lambda: JournalSchema(("bool",)))
    max_journal_bytes: int = MAX_JOURNAL_BYTES


@dataclass(frozen=True)
class PayloadVerification:
    """One verification attempt plus the sizes needed to reconstruct it from logs."""

    outcome: VerificationOutcome
    payload_len: int = 0
    receipt_len: int = 0
    identity_len: int = 0


class ProofVerifier:
    """Interface for verifying a proof receipt."""

    def verify(self, receipt_bytes: bytes, *, payload_identity: Optional[bytes] = None) -> VerificationOutcome:
        raise NotImplementedError

    def verify_payload(self, payload: str, *, max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> PayloadVerification:
        try:
            data = decode(payload, max_bytes=max_bytes)
        except PayloadError as exc:
            return PayloadVerification(
                outcome=Rejected(RejectKind.MALFORMED_PAYLOAD, str(exc)),
                payload_len=claimed_len(payload),
            )
        try:
            combined = split(data)
        except PayloadError as exc:
            return PayloadVerification(outcome=Rejected(RejectKind.MALFORMED_PAYLOAD, str(exc)), payload_len=len(data))
        outcome = self.verify(combined.receipt, payload_identity=combined.identity_bytes)
        return PayloadVerification(
            outcome=outcome,
            payload_len=combined.total_len,
            receipt_len=len(combined.receipt),
            identity_len=len(combined.identity_bytes),
        )


class MisconfiguredProofVerifier(ProofVerifier):
    def __init__(self, reason: str) -> None:
        self._reason = str(reason)

    @property
    def reason(self) -> str:
        return self._reason

    def verify(self, receipt_bytes: bytes, *, payload_identity: Optional[bytes] = None) -> VerificationOutcome:
        return Rejected(RejectKind.VERIFICATION_FAILURE, self._reason)


class _IdentityBoundVerifier(ProofVerifier):
    """Shared shell: one configured identity, one journal schema, identity diagnostics."""

    def __init__(self, *, identity: ProgramIdentity, journal_schema: JournalSchema, max_journal_bytes: int) -> None:
        if max_journal_bytes <= 0:
            raise ValueError("max_journal_bytes must be positive")
        self._identity = identity
        self._schema = journal_schema
        self._max_journal_bytes = int(max_journal_bytes)

    @property
    def identity(self) -> ProgramIdentity:
        return self._identity

    def verify(self, receipt_bytes: bytes, *, payload_identity: Optional[bytes] = None) -> VerificationOutcome:
        outcome = self._verify_receipt(receipt_bytes)
        if payload_identity is not None:
            self._log_identity_diagnostic(payload_identity, outcome)
        return outcome

    def _verify_receipt(self, receipt_bytes: bytes) -> VerificationOutcome:
        raise NotImplementedError

    def _check_image_id(self, image_id: ProgramIdentity) -> Optional[Rejected]:
        if image_id != self._identity:
            return Rejected(
                RejectKind.VERIFICATION_FAILURE,
                f"receipt claims image id {image_id}, expected {self._identity}",
            )
        return None

    def _decode_outputs(self, journal: bytes) -> VerificationOutcome:
        try:
            outputs = decode_journal(self._schema, journal)
        except JournalDecodeError as exc:
            return Rejected(RejectKind.JOURNAL_DECODE_ERROR, str(exc))
        return Accepted(outputs=outputs, journal=journal)

    def _log_identity_diagnostic(self, payload_identity: bytes, outcome: VerificationOutcome) -> None:
        try:
            claimed = parse_identity(payload_identity)
        except ValueError as exc:
            logger.warning("payload identity unreadable (diagnostic only): %s", exc)
            return
        if claimed != self._identity:
            logger.warning(
                "payload identity %s differs from configured identity %s (diagnostic only; outcome=%s)",
                claimed,
                self._identity,
                outcome.status.value,
            )


class ReceiptVerifier(_IdentityBoundVerifier):
    """
    Verify a Groth16 receipt (`src.core.receipt` format) against one program identity.

    Steps:
    - strict receipt decode (DESERIALIZATION_ERROR on any structural problem),
    - claim checks: image id equals the configured identity, exit code is 0,
    - pairing check over the claim digest recomputed with the configured identity,
    - journal decode per schema (JOURNAL_DECODE_ERROR on mismatch).
    """

    def __init__(
        self,
        *,
        identity: ProgramIdentity,
        verifying_key: VerifyingKey,
        journal_schema: JournalSchema,
        max_journal_bytes: int = MAX_JOURNAL_BYTES,
    ) -> None:
        if verifying_key.num_public_inputs != 2:
            raise ValueError(
                f"verifying key must have 2 public inputs (claim digest halves), has {verifying_key.num_public_inputs}"
            )
        super().__init__(identity=identity, journal_schema=journal_schema, max_journal_bytes=max_journal_bytes)
        self._vk = verifying_key

    def _verify_receipt(self, receipt_bytes: bytes) -> VerificationOutcome:
        try:
            receipt = decode_receipt(receipt_bytes, max_journal_bytes=self._max_journal_bytes)
        except ReceiptDecodeError as exc:
            return Rejected(RejectKind.DESERIALIZATION_ERROR, str(exc))

        mismatch = self._check_image_id(receipt.image_id)
        if mismatch is not None:
            return mismatch
        if receipt.exit_code != 0:
            return Rejected(RejectKind.VERIFICATION_FAILURE, f"program exited with code {receipt.exit_code}")

        inputs = claim_public_inputs(claim_digest(self._identity, receipt.journal, receipt.exit_code))
        if not verify_groth16(self._vk, receipt.seal, inputs):
            return Rejected(RejectKind.VERIFICATION_FAILURE, "groth16 pairing check failed")
        return self._decode_outputs(receipt.journal)


def _claimed_image_id(receipt: Any) -> ProgramIdentity:
    raw = getattr(receipt, "image_id", None)
    if callable(raw):
        raw = raw()
    if raw is None:
        raise ValueError("receipt does not expose its claimed image id")
    if isinstance(raw, (bytes, bytearray)):
        return ProgramIdentity.from_bytes(bytes(raw))
    return ProgramIdentity.parse(raw)


class Risc0ReceiptVerifier(_IdentityBoundVerifier):
    """
    Verify a RISC Zero segment receipt as serialized by the producer
    (`SegmentReceipt.__getstate__()` in pyr0).

    Steps:
    - deserialize through the zkVM bindings (DESERIALIZATION_ERROR on failure),
    - claimed image id equals the configured identity,
    - seal verification by the zkVM bindings,
    - journal size cap and decode per schema.

    `zkvm` is the imported `pyr0` module.
    """

    def __init__(
        self,
        *,
        identity: ProgramIdentity,
        journal_schema: JournalSchema,
        zkvm: Any,
        max_journal_bytes: int = MAX_JOURNAL_BYTES,
    ) -> None:
        super().__init__(identity=identity, journal_schema=journal_schema, max_journal_bytes=max_journal_bytes)
        self._zkvm = zkvm

    def _verify_receipt(self, receipt_bytes: bytes) -> VerificationOutcome:
        receipt = self._zkvm.SegmentReceipt()
        try:
            receipt.__setstate__(bytes(receipt_bytes))
        except Exception as exc:
            return Rejected(RejectKind.DESERIALIZATION_ERROR, f"receipt deserialization failed: {exc}")

        try:
            image_id = _claimed_image_id(receipt)
        except (TypeError, ValueError) as exc:
            return Rejected(RejectKind.VERIFICATION_FAILURE, str(exc))
        mismatch = self._check_image_id(image_id)
        if mismatch is not None:
            return mismatch

        try:
            verified = bool(self._zkvm.verify_receipt(receipt))
        except Exception as exc:
            return Rejected(RejectKind.VERIFICATION_FAILURE, f"receipt verification raised: {exc}")
        if not verified:
            return Rejected(RejectKind.VERIFICATION_FAILURE, "receipt seal verification failed")

        journal = bytes(receipt.journal_bytes())
        if len(journal) > self._max_journal_bytes:
            return Rejected(RejectKind.JOURNAL_DECODE_ERROR, f"journal exceeds {self._max_journal_bytes} bytes")
        return self._decode_outputs(journal)


def _load_zkvm() -> Any:
    return importlib.import_module("pyr0")


def make_proof_verifier(config: ProofVerifierConfig) -> ProofVerifier:
    if config.program_identity is None:
        return MisconfiguredProofVerifier("proof verifier misconfigured (missing program identity)")
    if config.backend == BACKEND_RISC0:
        try:
            zkvm = _load_zkvm()
        except ImportError as exc:
            return MisconfiguredProofVerifier(
                f"proof verifier misconfigured (risc0 backend requires pyr0; install the 'risc0' extra): {exc}"
            )
        try:
            return Risc0ReceiptVerifier(
                identity=config.program_identity,
                journal_schema=config.journal_schema,
                zkvm=zkvm,
                max_journal_bytes=config.max_journal_bytes,
            )
        except ValueError as exc:
            return MisconfiguredProofVerifier(f"proof verifier misconfigured ({exc})")
    if config.backend != BACKEND_GROTH16:
        return MisconfiguredProofVerifier(f"proof verifier misconfigured (unknown backend {config.backend!r})")
    if config.verifying_key is None:
        return MisconfiguredProofVerifier("proof verifier misconfigured (missing verifying key)")
    try:
        return ReceiptVerifier(
            identity=config.program_identity,
            verifying_key=config.verifying_key,
            journal_schema=config.journal_schema,
            max_journal_bytes=config.max_journal_bytes,
        )
    except ValueError as exc:
        return MisconfiguredProofVerifier(f"proof verifier misconfigured ({exc})")
