# src/lighter_engine/core/account/snapshot_reader.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterator, Optional

from lighter_engine.core.errors import AccountFetchError
from lighter_engine.core.market.metadata_cache import (
    DEFAULT_QUOTE_SUFFIX,
    coin_to_symbol,
    symbol_to_coin,
)
from lighter_engine.core.models.account import AccountRecord, AccountSnapshot, Position, RawPosition
from lighter_engine.core.models.enums import PositionSide
from lighter_engine.exchanges.base.exchange import MarketDataClient

log = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def leverage_from_imf(imf_percent: Decimal) -> Optional[Decimal]:
    # IMF is a percentage: 10 -> 10x
    if imf_percent <= 0:
        return None
    return _HUNDRED / imf_percent


def norm_position(raw: RawPosition, *, quote_suffix: str = DEFAULT_QUOTE_SUFFIX) -> Position | None:
    """
    RawPosition -> Position. Flat positions return None, which keeps the
    mark price division below away from a zero amount.
    """
    qty = raw.quantity
    if qty == 0:
        return None

    side = PositionSide.LONG if qty > 0 else PositionSide.SHORT
    amount = abs(qty)

    mark = raw.mark_price
    if mark is None:
        mark = raw.position_value / amount

    return Position(
        symbol=coin_to_symbol(raw.coin, quote_suffix),
        side=side,
        amount=amount,
        entry_price=raw.avg_entry_price,
        mark_price=mark,
        unrealized_pnl=raw.unrealized_pnl,
        liquidation_price=raw.liquidation_price,
        leverage=leverage_from_imf(raw.initial_margin_fraction),
    )


class AccountSnapshotReader:
    """
    Balance / positions projected from a fresh account fetch.

    Nothing is cached: each call hits the data client once, and two calls
    may observe different account states.
    """

    def __init__(
        self,
        *,
        client: MarketDataClient,
        account_index: int,
        quote_suffix: str = DEFAULT_QUOTE_SUFFIX,
    ) -> None:
        self.client = client
        self.account_index = int(account_index)
        self.quote_suffix = quote_suffix

    def _fetch(self) -> AccountRecord | None:
        try:
            return self.client.get_account(self.account_index)
        except Exception as e:
            log.warning("[ACCOUNT] fetch failed account=%s: %r", self.account_index, e)
            raise AccountFetchError(f"account fetch failed: {e}") from e

    def get_balance(self) -> AccountSnapshot:
        acc = self._fetch()
        if acc is None:
            raise AccountFetchError(f"account not found: index={self.account_index}")

        unrealized = sum((p.unrealized_pnl for p in acc.positions), Decimal(0))
        snap = AccountSnapshot(
            wallet_balance=acc.collateral - unrealized,
            available_balance=acc.available_balance,
            unrealized_pnl=unrealized,
        )

        log.info(
            "[ACCOUNT] equity=%s (wallet %s + unrealized %s) available=%s",
            acc.collateral, snap.wallet_balance, unrealized, snap.available_balance,
        )
        return snap

    def get_positions(self) -> Iterator[Position]:
        """
        Open positions, one pass. The fetch happens on first iteration.
        """
        acc = self._fetch()
        if acc is None:
            # no account record means no positions
            return
        for raw in acc.positions:
            pos = norm_position(raw, quote_suffix=self.quote_suffix)
            if pos is not None:
                yield pos

    def find_position(self, symbol: str, side: PositionSide) -> Position | None:
        sym = coin_to_symbol(symbol_to_coin(symbol, self.quote_suffix), self.quote_suffix)
        for pos in self.get_positions():
            if pos.symbol == sym and pos.side is side:
                return pos
        return None
