#!/usr/bin/env python3
"""
Replay deposits through a splitter configuration on an in-memory ledger.

Reads a config file (YAML/JSON, any supported version), delivers each
`--deposit ASSET:AMOUNT` through the transfer-and-call path, and prints the
resulting per-recipient balances and the config root.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from splitter.errors import SplitterError
from splitter.integration.config import SplitterConfig, build_splitter, load_config
from splitter.integration.host import LedgerHost
from splitter.state.canonical import canonical_address

DEFAULT_HOLDER = "0x" + "5b" * 20
DEFAULT_SENDER = "0x" + "de" * 20


def _parse_deposit(text: str) -> Tuple[str, int]:
    asset, sep, amount = text.rpartition(":")
    if not sep or not asset:
        raise argparse.ArgumentTypeError(f"deposit must be ASSET:AMOUNT, got {text!r}")
    try:
        value = int(amount)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"deposit amount must be an integer: {amount!r}") from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"deposit amount must be non-negative: {value}")
    try:
        return canonical_address(asset, name="asset"), value
    except (TypeError, ValueError) as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def run_replay(
    config: SplitterConfig,
    deposits: Sequence[Tuple[str, int]],
    *,
    holder: str = DEFAULT_HOLDER,
    sender: str = DEFAULT_SENDER,
) -> Dict[str, Any]:
    host = LedgerHost(holder)
    splitter = build_splitter(config, balance_oracle=host, transfer_executor=host, holder=host.holder)

    settled: List[Dict[str, Any]] = []
    for asset, amount in deposits:
        host.mint(sender, asset, amount)
        host.deliver(splitter, asset, sender, amount)
        event = splitter.events[-1]
        settled.append(
            {
                "asset": asset,
                "amount": amount,
                "primary_amount": event["primary_amount"],
                "secondary_amount": event["secondary_amount"],
            }
        )

    recipients = [config.primary] + [e.address for e in config.secondaries]
    balances: Dict[str, Dict[str, int]] = {}
    for asset in sorted({a for a, _ in deposits}):
        balances[asset] = {addr: host.balance_of(asset, addr) for addr in recipients}

    return {
        "config_root": splitter.config_root(),
        "deposits": settled,
        "balances": balances,
    }


def _print_text(report: Dict[str, Any], config: SplitterConfig) -> None:
    labels = {config.primary: "primary"}
    for i, e in enumerate(config.secondaries):
        labels[e.address] = f"secondary[{i}] ({e.weight} bps)"
    print(f"[split-replay] config_root={report['config_root']}")
    for d in report["deposits"]:
        print(
            f"[split-replay] deposit {d['amount']} {d['asset']}: "
            f"primary={d['primary_amount']} secondary={d['secondary_amount']}"
        )
    for asset, rows in report["balances"].items():
        print(f"[split-replay] balances for {asset}:")
        for addr, amount in rows.items():
            print(f"  {addr} {labels.get(addr, '')}: {amount}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Replay deposits through a splitter config")
    parser.add_argument("--config", required=True, help="Path to splitter config (.yaml/.json)")
    parser.add_argument(
        "--deposit",
        action="append",
        default=[],
        type=_parse_deposit,
        metavar="ASSET:AMOUNT",
        help="Deposit to deliver (repeatable, applied in order)",
    )
    parser.add_argument("--holder", default=DEFAULT_HOLDER, help="Splitter holding address")
    parser.add_argument("--sender", default=DEFAULT_SENDER, help="Depositor address")
    parser.add_argument("--json", action="store_true", help="Emit JSON")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("SPLITTER_LOG_LEVEL", "WARNING"),
        help="Logging level (default: $SPLITTER_LOG_LEVEL or WARNING)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=str(args.log_level).upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
        report = run_replay(config, args.deposit, holder=args.holder, sender=args.sender)
    except (OSError, ValueError, SplitterError) as exc:
        print(f"[split-replay] FAIL: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report, indent=2, sort_keys=True))
    else:
        _print_text(report, config)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
