"""
Developer prover: trapdoor Groth16 setup and simulated proofs.

NOT a proving system. Whoever holds the trapdoor can "prove" any statement, so
this exists only to produce receipts for local runs and tests. Production
receipts come from the external prover; the verifier never imports this module.

Simulation: with alpha = a*G1, beta = b*G2, gamma = g*G2, delta = d*G2 and
IC[i] = u_i*G1, pick r, s and set A = r*G1, B = s*G2, C = c*G1 where

    c = (r*s - a*b - g * (u_0 + sum x_i * u_{i+1})) / d   (mod curve order)

which satisfies the verification equation exactly.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import G1, G2, curve_order, multiply

from .canonical import domain_sep_bytes
from .groth16 import Groth16Proof, VerifyingKey
from .identity import ProgramIdentity
from .payload import encode_combined_payload
from .receipt import ProofReceipt, claim_digest, claim_public_inputs, encode_receipt


CLAIM_PUBLIC_INPUTS = 2


def _scalar(seed: bytes, label: str) -> int:
    ctr = 0
    while True:
        h = hashlib.sha256(
            domain_sep_bytes("dev_setup") + seed + label.encode("ascii") + ctr.to_bytes(4, "big")
        ).digest()
        v = int.from_bytes(h, "big") % curve_order
        if v:
            return v
        ctr += 1


@dataclass(frozen=True)
class DevTrapdoor:
    seed: bytes
    alpha: int
    beta: int
    gamma: int
    delta: int
    ic: Tuple[int, ...]


def dev_setup(seed: bytes, *, num_public_inputs: int = CLAIM_PUBLIC_INPUTS) -> Tuple[VerifyingKey, DevTrapdoor]:
    if num_public_inputs < 0:
        raise ValueError("num_public_inputs must be >= 0")
    td = DevTrapdoor(
        seed=bytes(seed),
        alpha=_scalar(seed, "alpha"),
        beta=_scalar(seed, "beta"),
        gamma=_scalar(seed, "gamma"),
        delta=_scalar(seed, "delta"),
        ic=tuple(_scalar(seed, f"ic{i}") for i in range(num_public_inputs + 1)),
    )
    vk = VerifyingKey(
        alpha_g1=multiply(G1, td.alpha),
        beta_g2=multiply(G2, td.beta),
        gamma_g2=multiply(G2, td.gamma),
        delta_g2=multiply(G2, td.delta),
        ic=tuple(multiply(G1, u) for u in td.ic),
    )
    return vk, td


def simulate_proof(td: DevTrapdoor, public_inputs: Sequence[int], *, nonce: bytes = b"") -> Groth16Proof:
    if len(public_inputs) + 1 != len(td.ic):
        raise ValueError(f"expected {len(td.ic) - 1} public inputs, got {len(public_inputs)}")
    transcript = nonce + b"".join(int(x).to_bytes(32, "big") for x in public_inputs)
    r = _scalar(td.seed, "r:" + transcript.hex())
    s = _scalar(td.seed, "s:" + transcript.hex())

    acc = td.ic[0]
    for x, u in zip(public_inputs, td.ic[1:]):
        acc = (acc + int(x) * u) % curve_order
    c = (r * s - td.alpha * td.beta - td.gamma * acc) * pow(td.delta, -1, curve_order) % curve_order

    return Groth16Proof(a=multiply(G1, r), b=multiply(G2, s), c=multiply(G1, c))


def prove_receipt(td: DevTrapdoor, image_id: ProgramIdentity, journal: bytes, *, exit_code: int = 0) -> ProofReceipt:
    inputs = claim_public_inputs(claim_digest(image_id, journal, exit_code))
    return ProofReceipt(
        image_id=image_id,
        exit_code=exit_code,
        journal=bytes(journal),
        seal=simulate_proof(td, inputs),
    )


def build_payload(
    td: DevTrapdoor,
    image_id: ProgramIdentity,
    journal: bytes,
    *,
    payload_identity: Optional[ProgramIdentity] = None,
    exit_code: int = 0,
) -> str:
    """Receipt plus trailing identity, hex-encoded as the rollup input payload."""
    receipt = prove_receipt(td, image_id, journal, exit_code=exit_code)
    return encode_combined_payload(encode_receipt(receipt), payload_identity or image_id)
