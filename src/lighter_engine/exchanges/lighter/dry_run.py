# src/lighter_engine/exchanges/lighter/dry_run.py
from __future__ import annotations

import logging
import threading

from lighter_engine.core.models.enums import MarginMode
from lighter_engine.core.models.order import OrderIntent
from lighter_engine.core.utils.idempotency import make_tx_hash

log = logging.getLogger("lighter_engine.exchanges.lighter.dry_run")


class DryRunSubmitter:
    """
    TxSubmitter that never touches the network.

    Logs every request and returns a deterministic hash derived from the
    request fields. Submitted requests are kept in `sent` for inspection.
    """

    def __init__(self, *, account_index: int = 0, api_key_index: int = 0):
        self.account_index = int(account_index)
        self.api_key_index = int(api_key_index)
        self.sent: list[tuple[str, dict]] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, payload: dict) -> str:
        tx_hash = make_tx_hash(kind, self.account_index, self.api_key_index, *sorted(payload.items()))
        with self._lock:
            self.sent.append((kind, payload))
        log.info("[DRY_RUN] %s %s -> hash=%s", kind, payload, tx_hash)
        return tx_hash

    def create_order(self, intent: OrderIntent) -> str:
        return self._record(
            "create_order",
            {
                "market_index": intent.market_index,
                "client_order_index": intent.client_order_index,
                "base_amount": intent.raw_quantity,
                "price": intent.limit_price,
                "is_ask": int(intent.is_ask),
                "type": intent.order_type.value,
                "time_in_force": intent.time_in_force.value,
                "reduce_only": int(intent.reduce_only),
                "trigger_price": intent.trigger_price,
                "order_expiry": intent.expiry_ms,
            },
        )

    def cancel_all_orders(self, *, symbol: str, timestamp_ms: int) -> str:
        return self._record("cancel_all_orders", {"symbol": symbol, "time": int(timestamp_ms)})

    def update_leverage(
        self,
        *,
        market_index: int,
        initial_margin_fraction: int,
        margin_mode: MarginMode,
    ) -> str:
        return self._record(
            "update_leverage",
            {
                "market_index": int(market_index),
                "initial_margin_fraction": int(initial_margin_fraction),
                "margin_mode": MarginMode(margin_mode).value,
            },
        )
