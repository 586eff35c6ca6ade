#!/usr/bin/env python3
"""
Query the live Grix API from the command line.

Uses GRIX_API_KEY from the environment (or a .env file) and prints the
facade's result as JSON, or the error kind and message on failure.

    python scripts/query_grix.py price BTC
    python scripts/query_grix.py options ETH --type put --position long
    python scripts/query_grix.py pairs --asset btc
    python scripts/query_grix.py signals BTC --budget 5000 --risk conservative --focus hedging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Dict

from dotenv import load_dotenv

from grix_config import load_settings
from grix_errors import GrixError
from grix_service import GrixService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query the Grix finance API")
    sub = parser.add_subparsers(dest="command", required=True)

    price = sub.add_parser("price", help="Spot price")
    price.add_argument("asset")

    options = sub.add_parser("options", help="Options market board")
    options.add_argument("asset")
    options.add_argument("--type", default="call", dest="option_type")
    options.add_argument("--position", default=None, dest="position_type")

    pairs = sub.add_parser("pairs", help="Perpetual pairs")
    pairs.add_argument("--protocol", default="hyperliquid")
    pairs.add_argument("--asset", default=None)

    signals = sub.add_parser("signals", help="Generate trading signals")
    signals.add_argument("asset")
    signals.add_argument("--budget", type=float, default=10000)
    signals.add_argument("--window-ms", type=int, default=None)
    signals.add_argument("--risk", default="moderate")
    signals.add_argument("--focus", default="growth")

    return parser


async def run(args: argparse.Namespace) -> Dict[str, Any]:
    settings = load_settings()
    service = GrixService(
        os.getenv("GRIX_API_KEY"),
        base_url=settings.grix_base_url,
        timeout_ms=settings.grix_timeout_ms,
        signal_max_attempts=settings.signal_max_attempts,
        signal_poll_interval=settings.signal_poll_interval_seconds,
    )
    try:
        if args.command == "price":
            return await service.get_price(args.asset)
        if args.command == "options":
            return await service.get_options(args.asset, args.option_type, position_type=args.position_type)
        if args.command == "pairs":
            return await service.get_perps_pairs(args.protocol, asset=args.asset)
        return await service.generate_signals(
            asset=args.asset,
            budget_usd=args.budget,
            trade_window_ms=args.window_ms or settings.signal_trade_window_ms,
            risk_level=args.risk,
            strategy_focus=args.focus,
        )
    finally:
        await service.aclose()


def main() -> int:
    load_dotenv()
    args = build_parser().parse_args()
    try:
        result = asyncio.run(run(args))
    except GrixError as exc:
        print(f"{exc.kind.value}: {exc}", file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
