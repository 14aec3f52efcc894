# src/lighter_engine/core/models/market.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True, slots=True)
class MarketInfo:
    """
    Per-market exchange metadata.

    size_decimals / price_decimals drive the fixed-point encoding of
    quantities and prices for this market.
    """

    coin: str
    market_index: int
    size_decimals: int
    price_decimals: int

    # informational, never enforced by the codec
    min_base_amount: Optional[Decimal] = None
    min_quote_amount: Optional[Decimal] = None
    status: Optional[str] = None

    def __post_init__(self) -> None:
        if self.size_decimals < 0 or self.price_decimals < 0:
            raise ValueError(
                f"negative decimals for {self.coin}: "
                f"size={self.size_decimals} price={self.price_decimals}"
            )


@dataclass(frozen=True, slots=True)
class OrderBookDetail:
    mark_price: Optional[Decimal] = None
    best_ask: Optional[Decimal] = None
    best_bid: Optional[Decimal] = None
