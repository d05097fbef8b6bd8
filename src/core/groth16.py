"""
Groth16 verification over BN254 (alt_bn128).

Point encoding follows EIP-197: uncompressed affine coordinates, each field
element 32 bytes big-endian; G2 coordinates are written imaginary part first.
The all-zero encoding (point at infinity) is never accepted for proof or key
points.

Verification checks

    e(A, B) == e(alpha, beta) * e(vk_x, gamma) * e(C, delta)

with vk_x = IC[0] + sum(x_i * IC[i + 1]). It is evaluated as a product of
Miller loops followed by a single final exponentiation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    FQ12,
    add,
    b,
    b2,
    curve_order,
    field_modulus,
    final_exponentiate,
    is_inf,
    is_on_curve,
    multiply,
    neg,
    normalize,
    pairing,
)

from .canonical import hex_to_bytes_allow_0x


FIELD_ELEMENT_SIZE = 32
G1_SIZE = 2 * FIELD_ELEMENT_SIZE
G2_SIZE = 4 * FIELD_ELEMENT_SIZE
PROOF_SIZE = G1_SIZE + G2_SIZE + G1_SIZE

G1Point = Tuple[FQ, FQ, FQ]
G2Point = Tuple[FQ2, FQ2, FQ2]


class Groth16EncodingError(ValueError):
    pass


def _read_fe(data: bytes, offset: int, *, name: str) -> int:
    v = int.from_bytes(data[offset : offset + FIELD_ELEMENT_SIZE], "big")
    if v >= field_modulus:
        raise Groth16EncodingError(f"{name}: field element is not canonical (>= modulus)")
    return v


def _fe_bytes(v: Any) -> bytes:
    return int(v).to_bytes(FIELD_ELEMENT_SIZE, "big")


def decode_g1(data: bytes, *, name: str = "g1") -> G1Point:
    if len(data) != G1_SIZE:
        raise Groth16EncodingError(f"{name}: expected {G1_SIZE} bytes, got {len(data)}")
    if not any(data):
        raise Groth16EncodingError(f"{name}: point at infinity is not allowed")
    x = _read_fe(data, 0, name=name)
    y = _read_fe(data, FIELD_ELEMENT_SIZE, name=name)
    pt = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(pt, b):
        raise Groth16EncodingError(f"{name}: point is not on the curve")
    return pt


def decode_g2(data: bytes, *, name: str = "g2") -> G2Point:
    if len(data) != G2_SIZE:
        raise Groth16EncodingError(f"{name}: expected {G2_SIZE} bytes, got {len(data)}")
    if not any(data):
        raise Groth16EncodingError(f"{name}: point at infinity is not allowed")
    x_im = _read_fe(data, 0, name=name)
    x_re = _read_fe(data, 32, name=name)
    y_im = _read_fe(data, 64, name=name)
    y_re = _read_fe(data, 96, name=name)
    pt = (FQ2([x_re, x_im]), FQ2([y_re, y_im]), FQ2.one())
    if not is_on_curve(pt, b2):
        raise Groth16EncodingError(f"{name}: point is not on the twist curve")
    return pt


def encode_g1(pt: G1Point) -> bytes:
    if is_inf(pt):
        return b"\x00" * G1_SIZE
    x, y = normalize(pt)
    return _fe_bytes(x) + _fe_bytes(y)


def encode_g2(pt: G2Point) -> bytes:
    if is_inf(pt):
        return b"\x00" * G2_SIZE
    x, y = normalize(pt)
    x_re, x_im = x.coeffs
    y_re, y_im = y.coeffs
    return _fe_bytes(x_im) + _fe_bytes(x_re) + _fe_bytes(y_im) + _fe_bytes(y_re)


def g2_in_subgroup(pt: G2Point) -> bool:
    # G1 on BN254 has cofactor 1; the twist does not.
    return is_inf(multiply(pt, curve_order))


@dataclass(frozen=True)
class Groth16Proof:
    a: G1Point
    b: G2Point
    c: G1Point

    @classmethod
    def from_bytes(cls, data: bytes) -> "Groth16Proof":
        if len(data) != PROOF_SIZE:
            raise Groth16EncodingError(f"seal must be {PROOF_SIZE} bytes, got {len(data)}")
        return cls(
            a=decode_g1(data[:G1_SIZE], name="seal.a"),
            b=decode_g2(data[G1_SIZE : G1_SIZE + G2_SIZE], name="seal.b"),
            c=decode_g1(data[G1_SIZE + G2_SIZE :], name="seal.c"),
        )

    def to_bytes(self) -> bytes:
        return encode_g1(self.a) + encode_g2(self.b) + encode_g1(self.c)


@dataclass(frozen=True)
class VerifyingKey:
    alpha_g1: G1Point
    beta_g2: G2Point
    gamma_g2: G2Point
    delta_g2: G2Point
    ic: Tuple[G1Point, ...]

    def __post_init__(self) -> None:
        if len(self.ic) < 1:
            raise ValueError("verifying key needs at least one IC point")
        object.__setattr__(self, "ic", tuple(self.ic))

    @property
    def num_public_inputs(self) -> int:
        return len(self.ic) - 1

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "protocol": "groth16",
            "curve": "bn254",
            "alpha_g1": "0x" + encode_g1(self.alpha_g1).hex(),
            "beta_g2": "0x" + encode_g2(self.beta_g2).hex(),
            "gamma_g2": "0x" + encode_g2(self.gamma_g2).hex(),
            "delta_g2": "0x" + encode_g2(self.delta_g2).hex(),
            "ic": ["0x" + encode_g1(p).hex() for p in self.ic],
        }

    @classmethod
    def from_json_dict(cls, obj: Mapping[str, Any]) -> "VerifyingKey":
        if not isinstance(obj, Mapping):
            raise Groth16EncodingError("verifying key must be an object")
        protocol = obj.get("protocol", "groth16")
        curve = obj.get("curve", "bn254")
        if protocol != "groth16" or curve != "bn254":
            raise Groth16EncodingError(f"unsupported verifying key: protocol={protocol!r} curve={curve!r}")

        def _g1(key: str, value: Any) -> G1Point:
            if not isinstance(value, str):
                raise Groth16EncodingError(f"{key} must be a hex string")
            return decode_g1(hex_to_bytes_allow_0x(value, name=key, expected_nbytes=G1_SIZE), name=key)

        def _g2(key: str) -> G2Point:
            value = obj.get(key)
            if not isinstance(value, str):
                raise Groth16EncodingError(f"{key} must be a hex string")
            return decode_g2(hex_to_bytes_allow_0x(value, name=key, expected_nbytes=G2_SIZE), name=key)

        ic_raw = obj.get("ic")
        if not isinstance(ic_raw, list) or not ic_raw:
            raise Groth16EncodingError("ic must be a non-empty list")
        vk = cls(
            alpha_g1=_g1("alpha_g1", obj.get("alpha_g1")),
            beta_g2=_g2("beta_g2"),
            gamma_g2=_g2("gamma_g2"),
            delta_g2=_g2("delta_g2"),
            ic=tuple(_g1(f"ic[{i}]", v) for i, v in enumerate(ic_raw)),
        )
        for name, pt in (("beta_g2", vk.beta_g2), ("gamma_g2", vk.gamma_g2), ("delta_g2", vk.delta_g2)):
            if not g2_in_subgroup(pt):
                raise Groth16EncodingError(f"{name} is not in the G2 subgroup")
        return vk


def verify_groth16(vk: VerifyingKey, proof: Groth16Proof, public_inputs: Sequence[int]) -> bool:
    """
    Pure pairing check. Returns False for any invalid statement; never raises
    on attacker-controlled proof points that already passed decoding.
    """
    if len(public_inputs) != vk.num_public_inputs:
        return False
    for x in public_inputs:
        if not isinstance(x, int) or isinstance(x, bool) or not (0 <= x < curve_order):
            return False
    if not g2_in_subgroup(proof.b):
        return False

    vk_x = vk.ic[0]
    for x, pt in zip(public_inputs, vk.ic[1:]):
        vk_x = add(vk_x, multiply(pt, x))

    f = pairing(proof.b, proof.a, final_exponentiate=False)
    f = f * pairing(vk.beta_g2, neg(vk.alpha_g1), final_exponentiate=False)
    f = f * pairing(vk.gamma_g2, neg(vk_x), final_exponentiate=False)
    f = f * pairing(vk.delta_g2, neg(proof.c), final_exponentiate=False)
    return final_exponentiate(f) == FQ12.one()
