# [TESTER] v1

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import pytest
import requests

from src.core.outcome import ProtocolStatus
from src.integration.rollup_client import (
    MalformedEnvelopeError,
    RequestType,
    RollupClient,
    RollupPostError,
    RollupTransportError,
    parse_rollup_request,
)


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None, *, text: str = "") -> None:
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self) -> Any:
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    def __init__(self, responses: List[Any]) -> None:
        self._responses = list(responses)
        self.calls: List[Tuple[str, Any, Optional[float]]] = []

    def post(self, url: str, *, json: Any = None, timeout: Optional[float] = None) -> FakeResponse:
        self.calls.append((url, json, timeout))
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


def _envelope(request_type: str = "advance_state", payload: str = "0xabcd") -> dict:
    return {"request_type": request_type, "data": {"payload": payload, "metadata": {"input_index": 3}}}


def test_finish_202_means_no_pending_work() -> None:
    session = FakeSession([FakeResponse(202)])
    client = RollupClient("http://node:5004/", session=session, finish_timeout_s=30.0)
    assert client.finish(ProtocolStatus.ACCEPT) is None
    assert session.calls == [("http://node:5004/finish", {"status": "accept"}, 30.0)]


def test_finish_200_returns_parsed_request() -> None:
    session = FakeSession([FakeResponse(200, _envelope())])
    request = RollupClient("http://node:5004", session=session).finish(ProtocolStatus.REJECT)
    assert request is not None
    assert request.kind is RequestType.ADVANCE
    assert request.payload == "0xabcd"
    assert request.metadata == {"input_index": 3}
    assert session.calls[0][1] == {"status": "reject"}


def test_unknown_request_type_is_kept_not_rejected_as_malformed() -> None:
    request = parse_rollup_request(_envelope(request_type="shutdown"))
    assert request.request_type == "shutdown"
    assert request.kind is None


@pytest.mark.parametrize(
    "body",
    [
        [],
        {"data": {"payload": "0x"}},
        {"request_type": "advance_state"},
        {"request_type": "advance_state", "data": {"payload": 12}},
        {"request_type": "advance_state", "data": {"payload": "0x", "metadata": "x"}},
    ],
)
def test_parse_rejects_malformed_envelopes(body: Any) -> None:
    with pytest.raises(MalformedEnvelopeError):
        parse_rollup_request(body)


def test_finish_transport_failures_are_fatal() -> None:
    client = RollupClient("http://node", session=FakeSession([requests.ConnectionError("refused")]))
    with pytest.raises(RollupTransportError, match="refused"):
        client.finish(ProtocolStatus.ACCEPT)

    client = RollupClient("http://node", session=FakeSession([FakeResponse(500, text="boom")]))
    with pytest.raises(RollupTransportError, match="500"):
        client.finish(ProtocolStatus.ACCEPT)

    client = RollupClient("http://node", session=FakeSession([FakeResponse(200, ValueError("not json"))]))
    with pytest.raises(MalformedEnvelopeError):
        client.finish(ProtocolStatus.ACCEPT)


def test_notice_and_report_post_hex_payload() -> None:
    session = FakeSession([FakeResponse(201), FakeResponse(200)])
    client = RollupClient("http://node", session=session, post_timeout_s=5.0)
    client.add_notice(b'{"verified_result":true}')
    client.add_report(b"\x00\xff")
    assert session.calls[0] == ("http://node/notice", {"payload": "0x" + b'{"verified_result":true}'.hex()}, 5.0)
    assert session.calls[1] == ("http://node/report", {"payload": "0x00ff"}, 5.0)


def test_post_failures_raise_rollup_post_error() -> None:
    client = RollupClient("http://node", session=FakeSession([FakeResponse(400, text="bad")]))
    with pytest.raises(RollupPostError, match="400"):
        client.add_notice(b"x")

    client = RollupClient("http://node", session=FakeSession([requests.Timeout("slow")]))
    with pytest.raises(RollupPostError, match="slow"):
        client.add_report(b"x")


def test_post_error_is_not_a_transport_error() -> None:
    assert not issubclass(RollupPostError, RollupTransportError)


def test_client_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        RollupClient("  ")
    with pytest.raises(ValueError):
        RollupClient("http://node", finish_timeout_s=0)
    with pytest.raises(ValueError):
        RollupClient("http://node", post_timeout_s=float("nan"))
