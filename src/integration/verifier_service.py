"""
Verifier service entry point.

Runs the dispatch loop against the rollup node until a transport-fatal error,
then exits non-zero so the supervisor restarts the process.

Exit codes:
- 1: transport-fatal error (connection failure, malformed envelope)
- 2: configuration error
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from .config import ConfigError, VerifierServiceConfig, load_config
from .dispatch import DispatchLoop
from .proof_verifier import MisconfiguredProofVerifier, make_proof_verifier
from .reporter import ResponseReporter
from .rollup_client import RollupClient, RollupTransportError


logger = logging.getLogger("src.integration")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def build_loop(config: VerifierServiceConfig, *, client: Optional[RollupClient] = None) -> DispatchLoop:
    if client is None:
        client = RollupClient(
            config.rollup_http_server_url,
            finish_timeout_s=config.finish_timeout_s,
            post_timeout_s=config.post_timeout_s,
        )
    verifier = make_proof_verifier(config.proof_verifier_config())
    if isinstance(verifier, MisconfiguredProofVerifier):
        logger.error("%s; every proof will be rejected", verifier.reason)
    else:
        logger.info(
            "verifying %s receipts for program identity %s (journal schema %s)",
            config.backend,
            config.program_identity,
            config.journal_schema,
        )
    return DispatchLoop(
        client=client,
        verifier=verifier,
        reporter=ResponseReporter(client, emit_notices=config.emit_notices),
        max_payload_bytes=config.max_payload_bytes,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Verify zero-knowledge proof receipts submitted to a rollup.")
    ap.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    ap.add_argument("--log-level", default=None, help="override the configured log level")
    ap.add_argument("--max-cycles", type=int, default=None, help=argparse.SUPPRESS)
    args = ap.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        setup_logging("ERROR")
        logger.error("configuration error: %s", exc)
        return 2

    setup_logging((args.log_level or config.log_level).upper())
    loop = build_loop(config)
    try:
        loop.run(max_cycles=args.max_cycles)
    except RollupTransportError as exc:
        logger.critical("rollup transport failure, exiting: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
