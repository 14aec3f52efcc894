from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from lighter_engine.core.engine.orchestrator import LighterTrader
from lighter_engine.core.models.account import AccountRecord, RawPosition
from lighter_engine.core.models.market import MarketInfo, OrderBookDetail


ETH = MarketInfo(coin="ETH", market_index=0, size_decimals=4, price_decimals=2)
BTC = MarketInfo(coin="BTC", market_index=1, size_decimals=5, price_decimals=1)

FIXED_NOW = 1_700_000_000.0


class DataClientStub:
    """In-memory MarketDataClient with call counters."""

    def __init__(self, markets=None, account=None, books=None):
        self.markets = list(markets if markets is not None else [ETH, BTC])
        self.account = account or AccountRecord(
            index=7,
            collateral=Decimal("1000"),
            available_balance=Decimal("800"),
        )
        self.books: dict[int, OrderBookDetail] = dict(
            books or {0: OrderBookDetail(mark_price=Decimal("3000")), 1: OrderBookDetail(mark_price=Decimal("60000"))}
        )
        self.list_calls = 0
        self.account_calls = 0
        self.book_calls = 0
        self.fail_list = False
        self.fail_account = False
        self.fail_book = False
        self.events: list[str] = []
        self._lock = threading.Lock()

    def _log(self, ev: str) -> None:
        with self._lock:
            self.events.append(ev)

    def list_markets(self):
        self.list_calls += 1
        if self.fail_list:
            raise ConnectionError("orderBooks down")
        return list(self.markets)

    def get_account(self, account_index):
        self.account_calls += 1
        if self.fail_account:
            raise ConnectionError("account down")
        return self.account

    def get_order_book_detail(self, market_index):
        self.book_calls += 1
        self._log(f"price:{market_index}")
        if self.fail_book:
            raise ConnectionError("book down")
        return self.books.get(market_index, OrderBookDetail())


class SubmitterStub:
    """Records every submitter call in order; each call can be set to fail."""

    def __init__(self):
        self.calls: list[tuple[str, object]] = []
        self.orders = []
        self.fail_cancel = False
        self.fail_leverage = False
        self.fail_order = False
        self._n = 0
        self._lock = threading.Lock()

    def _hash(self) -> str:
        with self._lock:
            self._n += 1
            return f"0xhash{self._n}"

    def create_order(self, intent):
        self.calls.append(("create_order", intent))
        if self.fail_order:
            raise RuntimeError("nonce rejected")
        self.orders.append(intent)
        return self._hash()

    def cancel_all_orders(self, *, symbol, timestamp_ms):
        self.calls.append(("cancel_all_orders", (symbol, timestamp_ms)))
        if self.fail_cancel:
            raise RuntimeError("cancel rejected")
        return self._hash()

    def update_leverage(self, *, market_index, initial_margin_fraction, margin_mode):
        self.calls.append(("update_leverage", (market_index, initial_margin_fraction, margin_mode)))
        if self.fail_leverage:
            raise RuntimeError("leverage rejected")
        return self._hash()

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]


def position(coin: str, qty: str, **kw) -> RawPosition:
    return RawPosition(coin=coin, market_index=kw.pop("market_index", 0), quantity=Decimal(qty), **kw)


@pytest.fixture
def data_client() -> DataClientStub:
    return DataClientStub()


@pytest.fixture
def submitter() -> SubmitterStub:
    return SubmitterStub()


@pytest.fixture
def trader(data_client, submitter) -> LighterTrader:
    return LighterTrader(
        data_client=data_client,
        submitter=submitter,
        account_index=7,
        clock=lambda: FIXED_NOW,
    )
