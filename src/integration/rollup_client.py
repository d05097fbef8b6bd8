"""
Rollup node HTTP client (long-poll request/finish contract).

Endpoints (relative to the node's base URL):
- POST /finish {"status": "accept"|"reject"}
    202 -> no pending work
    200 -> JSON request envelope {"request_type": ..., "data": {"payload": "0x..", ...}}
- POST /notice {"payload": "0x.."}   (advance only)
- POST /report {"payload": "0x.."}

Transport failures and malformed envelopes on /finish are fatal
(`RollupTransportError`); the process exits and the supervisor restarts it.
Failures posting notices/reports raise `RollupPostError`, which callers turn
into a reject.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

import requests

from ..core.outcome import ProtocolStatus


logger = logging.getLogger(__name__)


class RequestType(Enum):
    ADVANCE = "advance_state"
    INSPECT = "inspect_state"


class RollupTransportError(RuntimeError):
    pass


class MalformedEnvelopeError(RollupTransportError):
    pass


class RollupPostError(RuntimeError):
    pass


@dataclass(frozen=True)
class RollupRequest:
    # Raw string: unknown request types are rejected by the dispatch loop,
    # not treated as malformed envelopes.
    request_type: str
    payload: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> Optional[RequestType]:
        try:
            return RequestType(self.request_type)
        except ValueError:
            return None


def parse_rollup_request(body: Any) -> RollupRequest:
    if not isinstance(body, Mapping):
        raise MalformedEnvelopeError("request envelope must be a JSON object")
    request_type = body.get("request_type")
    if not isinstance(request_type, str) or not request_type:
        raise MalformedEnvelopeError("request envelope missing string request_type")
    data = body.get("data")
    if not isinstance(data, Mapping):
        raise MalformedEnvelopeError("request envelope missing object data")
    payload = data.get("payload")
    if not isinstance(payload, str):
        raise MalformedEnvelopeError("request envelope missing string data.payload")
    metadata = data.get("metadata")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise MalformedEnvelopeError("request envelope data.metadata must be an object")
    return RollupRequest(request_type=request_type, payload=payload, metadata=dict(metadata or {}))


class RollupClient:
    def __init__(
        self,
        base_url: str,
        *,
        session: Optional[requests.Session] = None,
        finish_timeout_s: Optional[float] = None,
        post_timeout_s: Optional[float] = None,
    ) -> None:
        if not isinstance(base_url, str) or not base_url.strip():
            raise ValueError("base_url must be a non-empty string")
        for name, v in (("finish_timeout_s", finish_timeout_s), ("post_timeout_s", post_timeout_s)):
            if v is not None and (not math.isfinite(v) or v <= 0):
                raise ValueError(f"{name} must be a positive finite number")
        self._base_url = base_url.strip().rstrip("/")
        self._session = session if session is not None else requests.Session()
        self._finish_timeout_s = finish_timeout_s
        self._post_timeout_s = post_timeout_s

    @property
    def base_url(self) -> str:
        return self._base_url

    def finish(self, status: ProtocolStatus) -> Optional[RollupRequest]:
        """Report the previous status and wait for the next request (None: no pending work)."""
        url = f"{self._base_url}/finish"
        try:
            resp = self._session.post(url, json={"status": status.value}, timeout=self._finish_timeout_s)
        except requests.RequestException as exc:
            raise RollupTransportError(f"finish request failed: {exc}") from exc

        if resp.status_code == 202:
            logger.debug("no pending rollup request")
            return None
        if resp.status_code != 200:
            raise RollupTransportError(f"finish returned HTTP {resp.status_code}: {resp.text[:200]!r}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedEnvelopeError(f"finish body is not JSON: {exc}") from exc
        return parse_rollup_request(body)

    def add_notice(self, payload: bytes) -> None:
        self._post_hex("notice", payload)

    def add_report(self, payload: bytes) -> None:
        self._post_hex("report", payload)

    def _post_hex(self, endpoint: str, payload: bytes) -> None:
        url = f"{self._base_url}/{endpoint}"
        try:
            resp = self._session.post(url, json={"payload": "0x" + bytes(payload).hex()}, timeout=self._post_timeout_s)
        except requests.RequestException as exc:
            raise RollupPostError(f"{endpoint} request failed: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise RollupPostError(f"{endpoint} returned HTTP {resp.status_code}: {resp.text[:200]!r}")
        logger.debug("%s accepted by rollup node (HTTP %s)", endpoint, resp.status_code)
