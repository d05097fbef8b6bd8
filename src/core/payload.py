"""
Combined proof payload codec.

Wire format (hex on the rollup protocol, optional 0x prefix):

    [receipt bytes][32-byte program identity, 8 x little-endian u32]

There is no length prefix; the boundary is the total length minus the fixed
identity size. Every function here is a pure view over the input.
"""

from __future__ import annotations

from dataclasses import dataclass

from .canonical import HEX_CHARS_RE
from .identity import IDENTITY_SIZE, ProgramIdentity


DEFAULT_MAX_PAYLOAD_BYTES = 4 * 1024 * 1024


class PayloadError(ValueError):
    pass


class MalformedHex(PayloadError):
    pass


class PayloadTooSmall(PayloadError):
    pass


class PayloadTooLarge(PayloadError):
    pass


@dataclass(frozen=True)
class CombinedPayload:
    receipt: bytes
    identity_bytes: bytes

    @property
    def total_len(self) -> int:
        return len(self.receipt) + len(self.identity_bytes)


def normalize(payload: str) -> str:
    if not isinstance(payload, str):
        raise MalformedHex("payload must be a string")
    if payload[:2] in ("0x", "0X"):
        return payload[2:]
    return payload


def claimed_len(payload: object) -> int:
    """Byte length the hex text would decode to; used for logging inputs that fail to decode."""
    if not isinstance(payload, str):
        return 0
    return len(normalize(payload)) // 2


def decode(payload: str, *, max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> bytes:
    s = normalize(payload)
    if len(s) > 2 * max_bytes:
        raise PayloadTooLarge(f"payload exceeds {max_bytes} bytes")
    if len(s) % 2 != 0:
        raise MalformedHex("payload must have an even number of hex chars")
    if not s:
        return b""
    if not HEX_CHARS_RE.fullmatch(s):
        raise MalformedHex("payload must be valid hex")
    return bytes.fromhex(s)


def split(data: bytes, identity_size: int = IDENTITY_SIZE) -> CombinedPayload:
    if len(data) <= identity_size:
        raise PayloadTooSmall(
            f"payload is {len(data)} bytes; must be larger than the {identity_size}-byte identity"
        )
    boundary = len(data) - identity_size
    return CombinedPayload(receipt=bytes(data[:boundary]), identity_bytes=bytes(data[boundary:]))


def parse_identity(identity_bytes: bytes) -> ProgramIdentity:
    """Diagnostic only: acceptance never depends on this value."""
    return ProgramIdentity.from_bytes(identity_bytes)


def decode_combined_payload(payload: str, *, max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> CombinedPayload:
    return split(decode(payload, max_bytes=max_bytes))


def encode_combined_payload(receipt: bytes, identity: ProgramIdentity, *, prefix: bool = True) -> str:
    body = (bytes(receipt) + identity.to_bytes()).hex()
    return "0x" + body if prefix else body
