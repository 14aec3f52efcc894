# src/lighter_engine/exchanges/lighter/normalize.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from lighter_engine.core.models.account import AccountRecord, RawPosition
from lighter_engine.core.models.market import MarketInfo, OrderBookDetail


def _to_decimal(x: Any) -> Decimal | None:
    if x is None:
        return None
    s = str(x).strip()
    if not s:
        return None
    try:
        return Decimal(s)
    except InvalidOperation:
        return None


def _dec(x: Any) -> Decimal:
    v = _to_decimal(x)
    return v if v is not None else Decimal(0)


def norm_market(raw: dict) -> MarketInfo | None:
    """
    /api/v1/orderBooks entry -> MarketInfo. Entries without symbol or
    market_id are skipped.
    """
    coin = str(raw.get("symbol") or "").strip().upper()
    market_id = raw.get("market_id")
    if not coin or market_id is None:
        return None

    return MarketInfo(
        coin=coin,
        market_index=int(market_id),
        size_decimals=int(raw.get("supported_size_decimals") or 0),
        price_decimals=int(raw.get("supported_price_decimals") or 0),
        min_base_amount=_to_decimal(raw.get("min_base_amount")),
        min_quote_amount=_to_decimal(raw.get("min_quote_amount")),
        status=raw.get("status"),
    )


def norm_position(raw: dict) -> RawPosition | None:
    coin = str(raw.get("symbol") or "").strip().upper()
    if not coin:
        return None

    qty = _dec(raw.get("position"))
    # Lighter reports an unsigned size plus a separate sign field; only
    # sign > 0 is long
    sign = raw.get("sign")
    if sign is not None:
        qty = abs(qty) if int(sign) > 0 else -abs(qty)

    return RawPosition(
        coin=coin,
        market_index=int(raw.get("market_id") or 0),
        quantity=qty,
        avg_entry_price=_dec(raw.get("avg_entry_price")),
        position_value=_dec(raw.get("position_value")),
        unrealized_pnl=_dec(raw.get("unrealized_pnl")),
        realized_pnl=_dec(raw.get("realized_pnl")),
        liquidation_price=_dec(raw.get("liquidation_price")),
        initial_margin_fraction=_dec(raw.get("initial_margin_fraction")),
        mark_price=_to_decimal(raw.get("mark_price")),
    )


def norm_account(raw: dict) -> AccountRecord:
    positions: list[RawPosition] = []
    for p in raw.get("positions") or []:
        rp = norm_position(p)
        if rp is not None:
            positions.append(rp)

    return AccountRecord(
        index=int(raw.get("index") or 0),
        collateral=_dec(raw.get("collateral")),
        available_balance=_dec(raw.get("available_balance")),
        positions=tuple(positions),
    )


def _top_of_book(levels: Any) -> Decimal | None:
    if not isinstance(levels, list) or not levels:
        return None
    first = levels[0]
    if isinstance(first, dict):
        return _to_decimal(first.get("price"))
    return None


def norm_order_book_detail(raw: dict) -> OrderBookDetail:
    """
    /api/v1/orderBookDetails -> OrderBookDetail.

    Accepts both the flat shape and the {"order_book_details": [...]} wrapper.
    Non-positive prices are treated as missing.
    """
    body = raw
    details = raw.get("order_book_details")
    if isinstance(details, list) and details and isinstance(details[0], dict):
        body = details[0]

    def _positive(v: Decimal | None) -> Decimal | None:
        return v if v is not None and v > 0 else None

    return OrderBookDetail(
        mark_price=_positive(_to_decimal(body.get("mark_price"))),
        best_ask=_positive(_top_of_book(body.get("asks"))),
        best_bid=_positive(_top_of_book(body.get("bids"))),
    )
