# src/lighter_engine/core/market/codec.py
from __future__ import annotations

import logging
from decimal import ROUND_DOWN, Decimal
from typing import Union

from lighter_engine.core.errors import MarketNotFound
from lighter_engine.core.market.metadata_cache import MarketMetadataCache

log = logging.getLogger(__name__)

FALLBACK_DECIMALS = 4

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 0.1 stays 0.1
        return Decimal(str(value))
    return Decimal(value)


def _scale(value: Number, decimals: int) -> int:
    scaled = to_decimal(value).scaleb(decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


class NumericCodec:
    """
    Human quantity/price <-> exchange fixed-point integers.

    Values are multiplied by 10**decimals and truncated toward zero.
    Markets missing from the cache are encoded with FALLBACK_DECIMALS
    unless strict=True, in which case MarketNotFound is raised. The
    fallback keeps trading alive on stale metadata but may misencode
    units for markets whose real precision differs.
    """

    def __init__(
        self,
        *,
        cache: MarketMetadataCache,
        strict: bool = False,
        fallback_decimals: int = FALLBACK_DECIMALS,
    ) -> None:
        self.cache = cache
        self.strict = bool(strict)
        self.fallback_decimals = int(fallback_decimals)

    def _decimals(self, symbol: str, *, field: str) -> int:
        info = self.cache.peek(symbol)
        if info is not None:
            return info.size_decimals if field == "size" else info.price_decimals

        if self.strict:
            raise MarketNotFound(f"no precision metadata for {symbol}", symbol=symbol)

        log.warning(
            "[CODEC] no metadata for %s, using fallback %s decimals=%d",
            symbol, field, self.fallback_decimals,
        )
        return self.fallback_decimals

    # ------------------------------------------------------------------
    # encode
    # ------------------------------------------------------------------
    def to_raw_size(self, symbol: str, quantity: Number) -> int:
        return _scale(quantity, self._decimals(symbol, field="size"))

    def to_raw_price(self, symbol: str, price: Number) -> int:
        return _scale(price, self._decimals(symbol, field="price"))

    # ------------------------------------------------------------------
    # decode
    # ------------------------------------------------------------------
    def from_raw_size(self, symbol: str, raw: int) -> Decimal:
        return Decimal(int(raw)).scaleb(-self._decimals(symbol, field="size"))

    def from_raw_price(self, symbol: str, raw: int) -> Decimal:
        return Decimal(int(raw)).scaleb(-self._decimals(symbol, field="price"))

    # ------------------------------------------------------------------
    # display
    # ------------------------------------------------------------------
    def format_quantity(self, symbol: str, quantity: Number) -> str:
        decimals = self._decimals(symbol, field="size")
        q = to_decimal(quantity).quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_DOWN)
        return f"{q:.{decimals}f}"
