# src/lighter_engine/run_engine.py
from __future__ import annotations

import argparse
import logging
from decimal import Decimal
from typing import Sequence

from lighter_engine.config import load_config
from lighter_engine.core.engine.orchestrator import LighterTrader
from lighter_engine.core.errors import ExecutionError

log = logging.getLogger("lighter_engine.run_engine")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="lighter-engine",
        description="Lighter perpetuals order execution (DRY_RUN by default).",
    )
    ap.add_argument("--config", type=str, default=None, help="YAML config with a `lighter:` section")
    ap.add_argument("--env-file", type=str, default=None)

    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("balance")
    sub.add_parser("positions")

    p = sub.add_parser("price")
    p.add_argument("symbol")

    for name in ("open-long", "open-short"):
        p = sub.add_parser(name)
        p.add_argument("symbol")
        p.add_argument("quantity", type=Decimal)
        p.add_argument("leverage", type=int)

    for name in ("close-long", "close-short"):
        p = sub.add_parser(name)
        p.add_argument("symbol")
        p.add_argument("quantity", type=Decimal, nargs="?", default=Decimal(0), help="0 = whole position")

    p = sub.add_parser("leverage")
    p.add_argument("symbol")
    p.add_argument("leverage", type=int)

    for name in ("stop-loss", "take-profit"):
        p = sub.add_parser(name)
        p.add_argument("symbol")
        p.add_argument("side", choices=["long", "short"])
        p.add_argument("quantity", type=Decimal)
        p.add_argument("price", type=Decimal)

    p = sub.add_parser("cancel-all")
    p.add_argument("symbol")

    p = sub.add_parser("format-qty")
    p.add_argument("symbol")
    p.add_argument("quantity", type=Decimal)

    return ap


def _run(trader: LighterTrader, args: argparse.Namespace) -> object:
    cmd = args.cmd
    if cmd == "balance":
        return trader.get_balance()
    if cmd == "positions":
        return trader.get_positions()
    if cmd == "price":
        return trader.get_market_price(args.symbol)
    if cmd == "open-long":
        return trader.open_long(args.symbol, args.quantity, args.leverage)
    if cmd == "open-short":
        return trader.open_short(args.symbol, args.quantity, args.leverage)
    if cmd == "close-long":
        return trader.close_long(args.symbol, args.quantity)
    if cmd == "close-short":
        return trader.close_short(args.symbol, args.quantity)
    if cmd == "leverage":
        return trader.set_leverage(args.symbol, args.leverage)
    if cmd == "stop-loss":
        return trader.set_stop_loss(args.symbol, args.side, args.quantity, args.price)
    if cmd == "take-profit":
        return trader.set_take_profit(args.symbol, args.side, args.quantity, args.price)
    if cmd == "cancel-all":
        return trader.cancel_all_orders(args.symbol)
    if cmd == "format-qty":
        return trader.format_quantity(args.symbol, args.quantity)
    raise SystemExit(f"unknown command: {cmd}")


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    cfg = load_config(args.config, env_file=args.env_file)
    log.warning(
        "DRY_RUN=%s (%s) endpoint=%s account=%s",
        cfg.dry_run,
        "NO REAL ORDERS" if cfg.dry_run else "REAL ORDERS ENABLED",
        cfg.endpoint,
        cfg.account_index,
    )

    trader = LighterTrader.from_config(cfg)

    try:
        result = _run(trader, args)
    except ExecutionError as e:
        log.error("%s failed: %s", args.cmd, e)
        for w in e.warnings:
            log.warning("  warning: %s", w)
        return 1

    if isinstance(result, list):
        for row in result:
            print(row)
    else:
        print(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
