"""
Rollup integration layer
"""

from .proof_verifier import (
    MisconfiguredProofVerifier,
    PayloadVerification,
    ProofVerifier,
    ProofVerifierConfig,
    ReceiptVerifier,
    Risc0ReceiptVerifier,
    make_proof_verifier,
)
from .rollup_client import (
    MalformedEnvelopeError,
    RequestType,
    RollupClient,
    RollupPostError,
    RollupRequest,
    RollupTransportError,
)
from .reporter import ResponseReporter
from .dispatch import DispatchLoop

__all__ = [
    "MisconfiguredProofVerifier",
    "PayloadVerification",
    "ProofVerifier",
    "ProofVerifierConfig",
    "ReceiptVerifier",
    "Risc0ReceiptVerifier",
    "make_proof_verifier",
    "MalformedEnvelopeError",
    "RequestType",
    "RollupClient",
    "RollupPostError",
    "RollupRequest",
    "RollupTransportError",
    "ResponseReporter",
    "DispatchLoop",
]
