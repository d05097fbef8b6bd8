"""
Response reporter: verification outcome -> protocol status.

Policy (fixed):
- Advance + Accepted: if notices are enabled, post {"verified_result": outputs}
  as a notice. A failed post degrades the status to reject
  (NOTICE_SUBMISSION_ERROR).
- Inspect: never emits notices (inspect is not recorded); it posts a report
  describing the outcome. A failed report post degrades to reject the same way.
- Rejected: reject, no side effects.

Each decision logs one line with the request metadata, payload/receipt/identity
lengths and the decoded outputs or reject kind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from ..core.canonical import canonical_json_bytes
from ..core.outcome import Accepted, ProtocolStatus, Rejected, RejectKind, VerificationOutcome
from .proof_verifier import PayloadVerification
from .rollup_client import RollupClient, RollupPostError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisionContext:
    request_type: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


def _json_ready(outputs: Any) -> Any:
    if isinstance(outputs, tuple):
        return [_json_ready(v) for v in outputs]
    return outputs


def notice_body(outputs: Any) -> bytes:
    return canonical_json_bytes({"verified_result": _json_ready(outputs)})


def report_body(outcome: VerificationOutcome) -> bytes:
    if isinstance(outcome, Accepted):
        return canonical_json_bytes({"verified": True, "verified_result": _json_ready(outcome.outputs)})
    return canonical_json_bytes({"verified": False, "kind": outcome.kind.value, "reason": outcome.reason})


class ResponseReporter:
    def __init__(self, client: RollupClient, *, emit_notices: bool = True) -> None:
        self._client = client
        self._emit_notices = bool(emit_notices)

    def report_advance(self, result: PayloadVerification, ctx: DecisionContext) -> ProtocolStatus:
        outcome = result.outcome
        if isinstance(outcome, Accepted) and self._emit_notices:
            try:
                self._client.add_notice(notice_body(outcome.outputs))
            except (RollupPostError, TypeError, ValueError) as exc:
                outcome = Rejected(RejectKind.NOTICE_SUBMISSION_ERROR, f"notice submission failed: {exc}")
        self._log_decision(result, outcome, ctx)
        return outcome.status

    def report_inspect(self, result: PayloadVerification, ctx: DecisionContext) -> ProtocolStatus:
        outcome = result.outcome
        try:
            self._client.add_report(report_body(outcome))
        except (RollupPostError, TypeError, ValueError) as exc:
            outcome = Rejected(RejectKind.NOTICE_SUBMISSION_ERROR, f"report submission failed: {exc}")
        self._log_decision(result, outcome, ctx)
        return outcome.status

    def report_unknown(self, ctx: DecisionContext) -> ProtocolStatus:
        outcome = Rejected(RejectKind.UNKNOWN_REQUEST_TYPE, f"unknown request_type {ctx.request_type!r}")
        self._log_decision(PayloadVerification(outcome=outcome), outcome, ctx)
        return outcome.status

    def _log_decision(self, result: PayloadVerification, outcome: VerificationOutcome, ctx: DecisionContext) -> None:
        fields: Dict[str, Any] = {
            "request_type": ctx.request_type,
            "input_index": ctx.metadata.get("input_index"),
            "payload_len": result.payload_len,
            "receipt_len": result.receipt_len,
            "identity_len": result.identity_len,
        }
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        if isinstance(outcome, Accepted):
            logger.info("accept %s outputs=%r", rendered, outcome.outputs)
        else:
            logger.warning("reject %s kind=%s reason=%s", rendered, outcome.kind.value, outcome.reason)
