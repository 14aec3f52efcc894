# src/lighter_engine/exchanges/lighter/rest.py
from __future__ import annotations

import logging
from typing import Any

import requests

from lighter_engine.core.models.account import AccountRecord
from lighter_engine.core.models.market import MarketInfo, OrderBookDetail
from lighter_engine.exchanges.lighter.normalize import (
    norm_account,
    norm_market,
    norm_order_book_detail,
)

MAINNET_URL = "https://mainnet.zklighter.elliot.ai"
TESTNET_URL = "https://testnet.zklighter.elliot.ai"

log = logging.getLogger("lighter_engine.exchanges.lighter.rest")


class LighterAPIError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class LighterREST:
    """
    Lighter public REST client (account / market reads).

    Every call is attempted exactly once. Errors raise LighterAPIError;
    network failures propagate as requests exceptions.
    """

    def __init__(
        self,
        *,
        base_url: str = MAINNET_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.sess = session or requests.Session()

    # ---------------------------------------------------------------------
    # CORE REQUEST
    # ---------------------------------------------------------------------

    def _get(self, path: str, *, params: dict[str, Any] | None = None) -> dict:
        url = f"{self.base_url}{path}"
        r = self.sess.get(url, params=dict(params or {}), timeout=self.timeout)

        if r.status_code != 200:
            log.warning("Lighter HTTP %d GET %s", r.status_code, path)
            raise LighterAPIError(
                f"Lighter HTTP {r.status_code} GET {path}: {r.text[:500]}",
                status_code=r.status_code,
            )

        try:
            payload = r.json()
        except ValueError as e:
            raise LighterAPIError(f"Lighter GET {path}: invalid JSON body") from e

        if not isinstance(payload, dict):
            raise LighterAPIError(f"Lighter GET {path}: unexpected payload type {type(payload).__name__}")

        # order book details may come without a code field
        code = payload.get("code")
        if code is not None and int(code) != 200:
            raise LighterAPIError(
                f"Lighter GET {path}: code={code} msg={payload.get('message')}",
                status_code=r.status_code,
                code=int(code),
            )
        return payload

    # ---------------------------------------------------------------------
    # API METHODS
    # ---------------------------------------------------------------------

    def list_markets(self) -> list[MarketInfo]:
        payload = self._get("/api/v1/orderBooks")
        out: list[MarketInfo] = []
        for raw in payload.get("order_books") or []:
            m = norm_market(raw)
            if m is not None:
                out.append(m)
        return out

    def get_account(self, account_index: int) -> AccountRecord | None:
        """
        First account record for the index, or None when the API lists none.
        """
        payload = self._get(
            "/api/v1/account",
            params={"by": "index", "value": int(account_index)},
        )
        accounts = payload.get("accounts") or []
        if not accounts:
            log.info("Lighter account index=%s: no account record", account_index)
            return None
        return norm_account(accounts[0])

    def get_order_book_detail(self, market_index: int) -> OrderBookDetail:
        payload = self._get(
            "/api/v1/orderBookDetails",
            params={"market_id": int(market_index)},
        )
        return norm_order_book_detail(payload)
