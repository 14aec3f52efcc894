# src/lighter_engine/core/models/order.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from lighter_engine.core.models.enums import OrderLifecycle, OrderType, TimeInForce


@dataclass(frozen=True, slots=True)
class OrderIntent:
    """
    Fully encoded order request handed to the transaction submitter.

    All numeric fields are already in exchange raw units.
    """

    symbol: str
    market_index: int
    client_order_index: int

    raw_quantity: int
    limit_price: int
    is_ask: bool

    reduce_only: bool = False
    order_type: OrderType = OrderType.LIMIT
    time_in_force: TimeInForce = TimeInForce.IOC

    trigger_price: Optional[int] = None
    expiry_ms: Optional[int] = None

    def __repr__(self) -> str:
        return (
            f"OrderIntent("
            f"{self.symbol} {'ASK' if self.is_ask else 'BID'} "
            f"base={self.raw_quantity} "
            f"price={self.limit_price} "
            f"type={self.order_type.value} "
            f"reduce={self.reduce_only} "
            f"coi={self.client_order_index}"
            f")"
        )


@dataclass(slots=True)
class OrderOutcome:
    """
    Result of a submitted order.

    SUBMITTED means the submitter accepted the transaction. It says nothing
    about fills: an IOC order may have expired unfilled. Confirm through a
    subsequent account query.
    """

    client_order_index: int
    symbol: str
    submission_handle: str
    intent: OrderIntent
    status: OrderLifecycle = OrderLifecycle.SUBMITTED
    warnings: list[str] = field(default_factory=list)

    @property
    def confirmed(self) -> bool:
        return False
