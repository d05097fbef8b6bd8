"""
Journal (committed public output) schemas.

The guest program writes its outputs as a sequence of little-endian 32-bit
words. A schema is a comma-separated list of field types; decoding must consume
the journal exactly.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from .canonical import hex_to_bytes_allow_0x


class JournalDecodeError(ValueError):
    pass


# field type -> (struct format, size in bytes)
_FIELD_FORMATS: Dict[str, Tuple[str, int]] = {
    "bool": ("<I", 4),
    "u32": ("<I", 4),
    "i32": ("<i", 4),
    "u64": ("<Q", 8),
    "i64": ("<q", 8),
    "bytes32": ("<32s", 32),
}


@dataclass(frozen=True)
class JournalSchema:
    fields: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError("journal schema must have at least one field")
        for f in self.fields:
            if f not in _FIELD_FORMATS:
                raise ValueError(f"unknown journal field type: {f!r} (expected one of {sorted(_FIELD_FORMATS)})")

    @classmethod
    def parse(cls, text: str) -> "JournalSchema":
        if not isinstance(text, str):
            raise TypeError("journal schema must be a string")
        parts = [p.strip().lower() for p in text.split(",")]
        if any(not p for p in parts):
            raise ValueError(f"journal schema has an empty field: {text!r}")
        return cls(tuple(parts))

    @property
    def size(self) -> int:
        return sum(_FIELD_FORMATS[f][1] for f in self.fields)

    def __str__(self) -> str:
        return ",".join(self.fields)


def _decode_field(kind: str, raw: bytes) -> Any:
    fmt, _ = _FIELD_FORMATS[kind]
    (v,) = struct.unpack(fmt, raw)
    if kind == "bool":
        if v not in (0, 1):
            raise JournalDecodeError(f"bool field must be 0 or 1, got {v}")
        return bool(v)
    if kind == "bytes32":
        return "0x" + v.hex()
    return int(v)


def decode_journal(schema: JournalSchema, journal: bytes) -> Any:
    """
    Decode `journal` per `schema`.

    Returns a single value for a one-field schema, otherwise a tuple.
    `bytes32` fields decode to 0x-prefixed hex so outputs are JSON-ready.
    """
    if len(journal) != schema.size:
        raise JournalDecodeError(
            f"journal is {len(journal)} bytes; schema {schema} expects {schema.size}"
        )
    values: List[Any] = []
    pos = 0
    for kind in schema.fields:
        n = _FIELD_FORMATS[kind][1]
        values.append(_decode_field(kind, journal[pos : pos + n]))
        pos += n
    if len(values) == 1:
        return values[0]
    return tuple(values)


def encode_journal(schema: JournalSchema, value: Any) -> bytes:
    values = [value] if len(schema.fields) == 1 else list(value)
    if len(values) != len(schema.fields):
        raise ValueError(f"schema {schema} expects {len(schema.fields)} values, got {len(values)}")
    out = bytearray()
    for kind, v in zip(schema.fields, values):
        fmt, _ = _FIELD_FORMATS[kind]
        if kind == "bool":
            out += struct.pack(fmt, 1 if v else 0)
        elif kind == "bytes32":
            raw = hex_to_bytes_allow_0x(v, name="bytes32") if isinstance(v, str) else bytes(v)
            if len(raw) != 32:
                raise ValueError("bytes32 field must be 32 bytes")
            out += raw
        else:
            try:
                out += struct.pack(fmt, int(v))
            except struct.error as exc:
                raise ValueError(f"{kind} field out of range: {v!r}") from exc
    return bytes(out)
