"""
Program identity (image id).

A program identity is eight unsigned 32-bit words. On the wire it is 32 bytes,
each word little-endian, in word order. The same layout is used for the
payload's trailing identity and for the image id embedded in a receipt claim.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Tuple

from .canonical import hex_to_bytes_allow_0x


IDENTITY_WORDS = 8
IDENTITY_SIZE = 4 * IDENTITY_WORDS

_WORDS_STRUCT = struct.Struct("<8I")


@dataclass(frozen=True)
class ProgramIdentity:
    words: Tuple[int, ...]

    def __post_init__(self) -> None:
        words = tuple(self.words)
        if len(words) != IDENTITY_WORDS:
            raise ValueError(f"program identity must have {IDENTITY_WORDS} words, got {len(words)}")
        for w in words:
            if not isinstance(w, int) or isinstance(w, bool) or not (0 <= w <= 0xFFFFFFFF):
                raise ValueError(f"program identity word out of u32 range: {w!r}")
        object.__setattr__(self, "words", words)

    @classmethod
    def from_words(cls, words: Iterable[int]) -> "ProgramIdentity":
        return cls(tuple(words))

    @classmethod
    def from_bytes(cls, data: bytes) -> "ProgramIdentity":
        if not isinstance(data, (bytes, bytearray)) or len(data) != IDENTITY_SIZE:
            raise ValueError(f"program identity must be exactly {IDENTITY_SIZE} bytes")
        return cls(_WORDS_STRUCT.unpack(bytes(data)))

    @classmethod
    def from_hex(cls, hex_str: str) -> "ProgramIdentity":
        return cls.from_bytes(hex_to_bytes_allow_0x(hex_str, name="program identity", expected_nbytes=IDENTITY_SIZE))

    @classmethod
    def parse(cls, value: object) -> "ProgramIdentity":
        """
        Accept the forms used in configuration files and environment variables:
        a 64-char hex string (optional 0x), a comma-separated string of 8 words,
        or a list of 8 ints.
        """
        if isinstance(value, ProgramIdentity):
            return value
        if isinstance(value, (list, tuple)):
            return cls.from_words(value)
        if isinstance(value, str):
            s = value.strip()
            if "," in s:
                try:
                    return cls.from_words(int(part.strip(), 0) for part in s.split(","))
                except ValueError as exc:
                    raise ValueError(f"invalid program identity word list: {value!r}") from exc
            return cls.from_hex(s)
        raise TypeError("program identity must be a hex string, a word list string, or a list of ints")

    def to_bytes(self) -> bytes:
        return _WORDS_STRUCT.pack(*self.words)

    def hex(self) -> str:
        return self.to_bytes().hex()

    def __str__(self) -> str:
        return "0x" + self.hex()
