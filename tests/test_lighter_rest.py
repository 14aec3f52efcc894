from __future__ import annotations

from decimal import Decimal

import pytest

from lighter_engine.core.engine.orchestrator import LighterTrader
from lighter_engine.core.errors import AccountFetchError, NoPositionToClose
from lighter_engine.exchanges.lighter.normalize import (
    norm_account,
    norm_market,
    norm_order_book_detail,
    norm_position,
)
from lighter_engine.exchanges.lighter.rest import LighterAPIError, LighterREST
from tests.conftest import SubmitterStub


class _Resp:
    def __init__(self, status_code: int, payload=None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or str(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class _Session:
    def __init__(self, resp: _Resp):
        self.resp = resp
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        return self.resp


ORDER_BOOKS = {
    "code": 200,
    "order_books": [
        {
            "symbol": "ETH",
            "market_id": 0,
            "status": "active",
            "min_base_amount": "0.0050",
            "min_quote_amount": "10.000000",
            "supported_size_decimals": 4,
            "supported_price_decimals": 2,
        },
        {"symbol": "", "market_id": 9},
    ],
}

ACCOUNT = {
    "code": 200,
    "accounts": [
        {
            "index": 7,
            "available_balance": "812.5",
            "collateral": "1020.0",
            "positions": [
                {
                    "market_id": 0,
                    "symbol": "ETH",
                    "initial_margin_fraction": "10.00",
                    "sign": -1,
                    "position": "1.5000",
                    "avg_entry_price": "3100.00",
                    "position_value": "4575.00",
                    "unrealized_pnl": "75.0",
                    "realized_pnl": "0",
                    "liquidation_price": "3600.10",
                },
            ],
        }
    ],
}


def test_list_markets_parses_order_books():
    sess = _Session(_Resp(200, ORDER_BOOKS))
    rest = LighterREST(base_url="https://example.test/", session=sess)

    markets = rest.list_markets()

    assert sess.calls[0][0] == "https://example.test/api/v1/orderBooks"
    assert len(markets) == 1
    eth = markets[0]
    assert (eth.coin, eth.market_index, eth.size_decimals, eth.price_decimals) == ("ETH", 0, 4, 2)
    assert eth.min_base_amount == Decimal("0.0050")


def test_get_account_applies_sign():
    sess = _Session(_Resp(200, ACCOUNT))
    rest = LighterREST(base_url="https://example.test", session=sess)

    acc = rest.get_account(7)

    assert sess.calls[0][1] == {"by": "index", "value": 7}
    assert acc.collateral == Decimal("1020.0")
    assert acc.positions[0].quantity == Decimal("-1.5000")
    assert acc.positions[0].initial_margin_fraction == Decimal("10.00")


def test_empty_accounts_means_no_record():
    rest = LighterREST(session=_Session(_Resp(200, {"code": 200, "accounts": []})))
    assert rest.get_account(1) is None


def test_close_all_without_account_record_is_no_position():
    sess = _Session(_Resp(200, {"code": 200, "accounts": []}))
    submitter = SubmitterStub()
    trader = LighterTrader(
        data_client=LighterREST(session=sess),
        submitter=submitter,
        account_index=7,
        load_markets=False,
    )

    assert trader.get_positions() == []
    with pytest.raises(NoPositionToClose):
        trader.close_long("ETHUSDT", 0)
    assert submitter.calls == []
    # balance still needs an account
    with pytest.raises(AccountFetchError):
        trader.get_balance()


def test_http_error_raises_once():
    sess = _Session(_Resp(503, None, text="unavailable"))
    rest = LighterREST(session=sess)
    with pytest.raises(LighterAPIError) as ei:
        rest.list_markets()
    assert ei.value.status_code == 503
    # no retry
    assert len(sess.calls) == 1


def test_body_code_error_raises():
    rest = LighterREST(session=_Session(_Resp(200, {"code": 21100, "message": "invalid param"})))
    with pytest.raises(LighterAPIError) as ei:
        rest.list_markets()
    assert ei.value.code == 21100


def test_order_book_detail_mark_price():
    rest = LighterREST(session=_Session(_Resp(200, {"mark_price": "3012.34"})))
    detail = rest.get_order_book_detail(0)
    assert detail.mark_price == Decimal("3012.34")


def test_order_book_detail_top_of_book_fallback():
    detail = norm_order_book_detail(
        {
            "code": 200,
            "order_book_details": [
                {
                    "asks": [{"price": "3001.00", "size": "1"}],
                    "bids": [{"price": "2999.00", "size": "2"}],
                }
            ],
        }
    )
    assert detail.mark_price is None
    assert detail.best_ask == Decimal("3001.00")
    assert detail.best_bid == Decimal("2999.00")


def test_order_book_detail_ignores_empty_and_zero_values():
    detail = norm_order_book_detail({"mark_price": "0", "asks": [], "bids": "bad"})
    assert detail == norm_order_book_detail({})
    assert detail.mark_price is None and detail.best_ask is None and detail.best_bid is None


def test_normalizers_skip_incomplete_entries():
    assert norm_market({"symbol": "ETH"}) is None
    assert norm_position({"position": "1"}) is None

    pos = norm_position({"symbol": "btc", "position": "-0.3", "sign": -1})
    # already signed values are not flipped twice
    assert pos.quantity == Decimal("-0.3")
    assert pos.coin == "BTC"

    acc = norm_account({"collateral": "", "positions": None})
    assert acc.collateral == Decimal(0)
    assert acc.positions == ()


@pytest.mark.parametrize(
    "raw_qty, sign, expected",
    [("1.5", 1, "1.5"), ("1.5", -1, "-1.5"), ("1.5", 0, "-1.5"), ("-2", 1, "2"), ("0.7", None, "0.7")],
)
def test_sign_field_decides_direction(raw_qty, sign, expected):
    raw = {"symbol": "ETH", "position": raw_qty}
    if sign is not None:
        raw["sign"] = sign
    assert norm_position(raw).quantity == Decimal(expected)
