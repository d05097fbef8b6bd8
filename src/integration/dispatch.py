"""
Dispatch loop: the long-poll cycle against the rollup node.

Each cycle reports the previous status via /finish, then routes the returned
request by type. Requests are processed strictly one at a time, in delivery
order. Transport errors propagate (fatal); handler errors never do.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from ..core.payload import DEFAULT_MAX_PAYLOAD_BYTES
from ..core.outcome import ProtocolStatus
from .proof_verifier import ProofVerifier
from .reporter import DecisionContext, ResponseReporter
from .rollup_client import RequestType, RollupClient, RollupRequest


logger = logging.getLogger(__name__)

Handler = Callable[[RollupRequest], ProtocolStatus]


class DispatchLoop:
    def __init__(
        self,
        *,
        client: RollupClient,
        verifier: ProofVerifier,
        reporter: ResponseReporter,
        max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES,
    ) -> None:
        if max_payload_bytes <= 0:
            raise ValueError("max_payload_bytes must be positive")
        self._client = client
        self._verifier = verifier
        self._reporter = reporter
        self._max_payload_bytes = int(max_payload_bytes)
        self._handlers: Dict[RequestType, Handler] = {
            RequestType.ADVANCE: self.handle_advance,
            RequestType.INSPECT: self.handle_inspect,
        }

    def handle_advance(self, request: RollupRequest) -> ProtocolStatus:
        result = self._verifier.verify_payload(request.payload, max_bytes=self._max_payload_bytes)
        return self._reporter.report_advance(result, self._context(request))

    def handle_inspect(self, request: RollupRequest) -> ProtocolStatus:
        result = self._verifier.verify_payload(request.payload, max_bytes=self._max_payload_bytes)
        return self._reporter.report_inspect(result, self._context(request))

    def dispatch(self, request: RollupRequest) -> ProtocolStatus:
        kind = request.kind
        handler = self._handlers.get(kind) if kind is not None else None
        if handler is None:
            return self._reporter.report_unknown(self._context(request))
        return handler(request)

    def step(self, status: ProtocolStatus) -> ProtocolStatus:
        """One poll cycle. Returns the status to report on the next cycle."""
        request = self._client.finish(status)
        if request is None:
            return status
        logger.debug("received %s request", request.request_type)
        return self.dispatch(request)

    def run(self, *, max_cycles: Optional[int] = None) -> ProtocolStatus:
        """
        Poll forever (or `max_cycles` times). RollupTransportError is not
        caught here: the process is expected to exit and be restarted.
        """
        status = ProtocolStatus.ACCEPT
        cycles = 0
        logger.info("dispatch loop started against %s", self._client.base_url)
        while max_cycles is None or cycles < max_cycles:
            status = self.step(status)
            cycles += 1
        return status

    @staticmethod
    def _context(request: RollupRequest) -> DecisionContext:
        return DecisionContext(request_type=request.request_type, metadata=request.metadata)
