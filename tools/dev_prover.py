#!/usr/bin/env python3
"""
Developer receipt producer (trapdoor Groth16, NOT a proving system).

Subcommands:
  setup    write the verifying key JSON for a seed
  payload  print a rollup input payload (hex receipt + trailing identity)

Both sides must use the same --seed. Example:

  tools/dev_prover.py setup --seed 01 --out vk.json
  tools/dev_prover.py payload --seed 01 --identity 0x<64 hex> --schema bool --value true
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from src.core.canonical import hex_to_bytes_allow_0x  # noqa: E402
from src.core.dev_prover import build_payload, dev_setup  # noqa: E402
from src.core.identity import ProgramIdentity  # noqa: E402
from src.core.journal import JournalSchema, encode_journal  # noqa: E402


def _die(msg: str) -> None:
    sys.stderr.write(str(msg) + "\n")
    raise SystemExit(2)


def _cmd_setup(args: argparse.Namespace) -> None:
    vk, _td = dev_setup(hex_to_bytes_allow_0x(args.seed, name="seed"))
    text = json.dumps(vk.to_json_dict(), indent=2, sort_keys=True) + "\n"
    if args.out is None:
        sys.stdout.write(text)
    else:
        args.out.write_text(text, encoding="utf-8")


def _cmd_payload(args: argparse.Namespace) -> None:
    try:
        identity = ProgramIdentity.parse(args.identity)
        payload_identity = ProgramIdentity.parse(args.payload_identity) if args.payload_identity else None
        schema = JournalSchema.parse(args.schema)
        journal = encode_journal(schema, json.loads(args.value))
    except (TypeError, ValueError) as exc:
        _die(f"invalid input: {exc}")

    _vk, td = dev_setup(hex_to_bytes_allow_0x(args.seed, name="seed"))
    payload = build_payload(td, identity, journal, payload_identity=payload_identity, exit_code=args.exit_code)
    sys.stdout.write(payload + "\n")


def main(argv: Sequence[str]) -> None:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_setup = sub.add_parser("setup", help="write the verifying key for a seed")
    p_setup.add_argument("--seed", required=True, help="hex seed for the trapdoor setup")
    p_setup.add_argument("--out", type=Path, default=None, help="output path (default: stdout)")
    p_setup.set_defaults(func=_cmd_setup)

    p_payload = sub.add_parser("payload", help="print a combined proof payload")
    p_payload.add_argument("--seed", required=True, help="hex seed for the trapdoor setup")
    p_payload.add_argument("--identity", required=True, help="program identity the receipt claims")
    p_payload.add_argument("--payload-identity", default=None, help="trailing identity (default: --identity)")
    p_payload.add_argument("--schema", default="bool", help="journal schema, e.g. 'bool' or 'u32,bytes32'")
    p_payload.add_argument("--value", default="true", help="journal value as JSON (list for multi-field schemas)")
    p_payload.add_argument("--exit-code", type=int, default=0)
    p_payload.set_defaults(func=_cmd_payload)

    args = ap.parse_args(list(argv))
    args.func(args)


if __name__ == "__main__":
    main(sys.argv[1:])
