"""
Verification outcomes and protocol status.

The wire response is a single bit (`accept`/`reject`), but every rejection
carries a `RejectKind` so logs can tell the failure modes apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ProtocolStatus(Enum):
    ACCEPT = "accept"
    REJECT = "reject"


class RejectKind(Enum):
    MALFORMED_PAYLOAD = "malformed_payload"
    DESERIALIZATION_ERROR = "deserialization_error"
    VERIFICATION_FAILURE = "verification_failure"
    JOURNAL_DECODE_ERROR = "journal_decode_error"
    NOTICE_SUBMISSION_ERROR = "notice_submission_error"
    UNKNOWN_REQUEST_TYPE = "unknown_request_type"


@dataclass(frozen=True)
class Accepted:
    outputs: Any
    journal: bytes = b""

    @property
    def status(self) -> ProtocolStatus:
        return ProtocolStatus.ACCEPT


@dataclass(frozen=True)
class Rejected:
    kind: RejectKind
    reason: str

    @property
    def status(self) -> ProtocolStatus:
        return ProtocolStatus.REJECT


VerificationOutcome = Union[Accepted, Rejected]
