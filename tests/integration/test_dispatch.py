# [TESTER] v1

from __future__ import annotations

import functools
from typing import List, Optional

import pytest

from src.core.dev_prover import build_payload, dev_setup
from src.core.identity import ProgramIdentity
from src.core.journal import JournalSchema
from src.core.outcome import Accepted, ProtocolStatus, Rejected, RejectKind
from src.integration.dispatch import DispatchLoop
from src.integration.proof_verifier import PayloadVerification, ProofVerifier, ReceiptVerifier
from src.integration.reporter import ResponseReporter
from src.integration.rollup_client import RollupRequest, RollupTransportError


IDENTITY = ProgramIdentity.from_words([1, 2, 3, 4, 5, 6, 7, 8])


class ScriptedClient:
    """Replays a fixed sequence of /finish answers and records what was reported."""

    base_url = "http://fake-node"

    def __init__(self, requests_: List[Optional[RollupRequest]]) -> None:
        self._requests = list(requests_)
        self.statuses: List[ProtocolStatus] = []
        self.notices: List[bytes] = []
        self.reports: List[bytes] = []

    def finish(self, status: ProtocolStatus) -> Optional[RollupRequest]:
        self.statuses.append(status)
        if not self._requests:
            raise RollupTransportError("node went away")
        return self._requests.pop(0)

    def add_notice(self, payload: bytes) -> None:
        self.notices.append(payload)

    def add_report(self, payload: bytes) -> None:
        self.reports.append(payload)


class FixedVerifier(ProofVerifier):
    def __init__(self, outcomes: List) -> None:
        self._outcomes = list(outcomes)
        self.payloads: List[str] = []

    def verify_payload(self, payload: str, *, max_bytes: int = 0) -> PayloadVerification:
        self.payloads.append(payload)
        return PayloadVerification(outcome=self._outcomes.pop(0))


def _advance(payload: str = "0x00") -> RollupRequest:
    return RollupRequest(request_type="advance_state", payload=payload, metadata={})


def _loop(client: ScriptedClient, verifier: ProofVerifier) -> DispatchLoop:
    return DispatchLoop(client=client, verifier=verifier, reporter=ResponseReporter(client))


def test_status_of_each_request_is_reported_on_the_next_finish() -> None:
    client = ScriptedClient([_advance("0x01"), _advance("0x02"), None])
    verifier = FixedVerifier([
        Rejected(RejectKind.VERIFICATION_FAILURE, "bad proof"),
        Accepted(outputs=True),
    ])
    final = _loop(client, verifier).run(max_cycles=3)
    # First finish always reports accept; the idle cycle (202) re-reports the last status.
    assert client.statuses == [ProtocolStatus.ACCEPT, ProtocolStatus.REJECT, ProtocolStatus.ACCEPT]
    assert final is ProtocolStatus.ACCEPT
    assert verifier.payloads == ["0x01", "0x02"]
    assert client.notices == [b'{"verified_result":true}']


def test_rejected_request_does_not_stop_processing() -> None:
    client = ScriptedClient([_advance("0xbad"), _advance("0xgood")])
    verifier = FixedVerifier([
        Rejected(RejectKind.MALFORMED_PAYLOAD, "odd hex"),
        Accepted(outputs=False),
    ])
    loop = _loop(client, verifier)
    assert loop.run(max_cycles=2) is ProtocolStatus.ACCEPT
    with pytest.raises(RollupTransportError):
        loop.step(ProtocolStatus.ACCEPT)
    assert client.statuses == [ProtocolStatus.ACCEPT, ProtocolStatus.REJECT, ProtocolStatus.ACCEPT]


def test_unknown_request_type_is_rejected_without_verification() -> None:
    client = ScriptedClient([RollupRequest(request_type="shutdown", payload="0x")])
    verifier = FixedVerifier([])
    assert _loop(client, verifier).run(max_cycles=1) is ProtocolStatus.REJECT
    assert verifier.payloads == []


def test_inspect_request_posts_a_report() -> None:
    client = ScriptedClient([RollupRequest(request_type="inspect_state", payload="0x")])
    verifier = FixedVerifier([Accepted(outputs=True)])
    assert _loop(client, verifier).run(max_cycles=1) is ProtocolStatus.ACCEPT
    assert client.notices == []
    assert len(client.reports) == 1


def test_transport_error_propagates_out_of_run() -> None:
    client = ScriptedClient([])
    with pytest.raises(RollupTransportError):
        _loop(client, FixedVerifier([])).run()


def test_max_payload_bytes_must_be_positive() -> None:
    client = ScriptedClient([])
    with pytest.raises(ValueError):
        DispatchLoop(client=client, verifier=FixedVerifier([]), reporter=ResponseReporter(client), max_payload_bytes=0)


@functools.lru_cache(maxsize=None)
def _setup():
    return dev_setup(b"dispatch-tests")


def test_end_to_end_with_real_receipts() -> None:
    vk, td = _setup()
    good = build_payload(td, IDENTITY, b"\x01\x00\x00\x00")
    foreign = build_payload(td, ProgramIdentity.from_words([0] * 8), b"\x01\x00\x00\x00")
    client = ScriptedClient([_advance(good), _advance(foreign), _advance(good[2:])])
    verifier = ReceiptVerifier(identity=IDENTITY, verifying_key=vk, journal_schema=JournalSchema(("bool",)))
    final = _loop(client, verifier).run(max_cycles=3)
    assert client.statuses == [ProtocolStatus.ACCEPT, ProtocolStatus.ACCEPT, ProtocolStatus.REJECT]
    assert final is ProtocolStatus.ACCEPT
    assert client.notices == [b'{"verified_result":true}'] * 2
