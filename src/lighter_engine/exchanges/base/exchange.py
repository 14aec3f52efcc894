# src/lighter_engine/exchanges/base/exchange.py
from __future__ import annotations

from typing import Protocol, Sequence

from lighter_engine.core.models.account import AccountRecord
from lighter_engine.core.models.enums import MarginMode
from lighter_engine.core.models.market import MarketInfo, OrderBookDetail
from lighter_engine.core.models.order import OrderIntent


# -------- market / account data --------

class MarketDataClient(Protocol):
    """
    Raw network reads. Implementations raise on transport / API errors and
    never retry.
    """

    def list_markets(self) -> Sequence[MarketInfo]: ...

    # None when the index has no account record yet
    def get_account(self, account_index: int) -> AccountRecord | None: ...

    def get_order_book_detail(self, market_index: int) -> OrderBookDetail: ...


# -------- signer / submitter --------

class TxSubmitter(Protocol):
    """
    Signs and submits transactions, returns the submission hash.

    A returned hash means "accepted for submission", never "filled".
    Failure is signalled by raising.
    """

    def create_order(self, intent: OrderIntent) -> str: ...

    def cancel_all_orders(self, *, symbol: str, timestamp_ms: int) -> str: ...

    def update_leverage(
        self,
        *,
        market_index: int,
        initial_margin_fraction: int,
        margin_mode: MarginMode,
    ) -> str: ...
