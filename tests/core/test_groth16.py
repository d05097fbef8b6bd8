# [TESTER] v1

from __future__ import annotations

import functools

import pytest
from py_ecc.optimized_bn128 import G1, curve_order, field_modulus, multiply

from src.core.dev_prover import dev_setup, simulate_proof
from src.core.groth16 import (
    G1_SIZE,
    G2_SIZE,
    Groth16EncodingError,
    Groth16Proof,
    VerifyingKey,
    decode_g1,
    decode_g2,
    encode_g1,
    encode_g2,
    verify_groth16,
)


@functools.lru_cache(maxsize=None)
def _setup():
    return dev_setup(b"groth16-tests")


def test_simulated_proof_satisfies_pairing_equation() -> None:
    vk, td = _setup()
    inputs = [12345, 2**127 + 9]
    proof = simulate_proof(td, inputs)
    assert verify_groth16(vk, proof, inputs) is True


def test_proof_does_not_verify_for_other_public_inputs() -> None:
    vk, td = _setup()
    proof = simulate_proof(td, [1, 2])
    assert verify_groth16(vk, proof, [1, 3]) is False


def test_proof_from_another_setup_is_rejected() -> None:
    vk, _td = _setup()
    _other_vk, other_td = dev_setup(b"someone-else")
    proof = simulate_proof(other_td, [1, 2])
    assert verify_groth16(vk, proof, [1, 2]) is False


def test_public_input_range_and_arity_are_checked() -> None:
    vk, td = _setup()
    proof = simulate_proof(td, [1, 2])
    assert verify_groth16(vk, proof, [1]) is False
    assert verify_groth16(vk, proof, [1, 2, 3]) is False
    assert verify_groth16(vk, proof, [1, 2 + curve_order]) is False


def test_point_encoding_round_trips_and_is_canonical() -> None:
    vk, td = _setup()
    proof = simulate_proof(td, [5, 6])
    raw = proof.to_bytes()
    assert Groth16Proof.from_bytes(raw).to_bytes() == raw
    assert encode_g1(decode_g1(encode_g1(vk.alpha_g1))) == encode_g1(vk.alpha_g1)
    assert encode_g2(decode_g2(encode_g2(vk.beta_g2))) == encode_g2(vk.beta_g2)


def test_decode_rejects_infinity_off_curve_and_non_canonical_points() -> None:
    with pytest.raises(Groth16EncodingError):
        decode_g1(b"\x00" * G1_SIZE)
    with pytest.raises(Groth16EncodingError):
        decode_g2(b"\x00" * G2_SIZE)

    good = encode_g1(multiply(G1, 7))
    off_curve = good[:-1] + bytes([good[-1] ^ 1])
    with pytest.raises(Groth16EncodingError):
        decode_g1(off_curve)

    x = int.from_bytes(good[:32], "big")
    shifted = (x + field_modulus).to_bytes(32, "big") + good[32:]
    with pytest.raises(Groth16EncodingError):
        decode_g1(shifted)


def test_verifying_key_json_round_trip() -> None:
    vk, _td = _setup()
    obj = vk.to_json_dict()
    restored = VerifyingKey.from_json_dict(obj)
    assert restored.to_json_dict() == obj
    assert restored.num_public_inputs == 2


def test_verifying_key_json_rejects_unsupported_curve() -> None:
    vk, _td = _setup()
    obj = dict(vk.to_json_dict(), curve="bls12_381")
    with pytest.raises(Groth16EncodingError):
        VerifyingKey.from_json_dict(obj)
