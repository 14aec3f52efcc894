# src/lighter_engine/core/models/__init__.py
from .account import AccountRecord, AccountSnapshot, Position, RawPosition
from .enums import MarginMode, OrderLifecycle, OrderType, PositionSide, TimeInForce
from .market import MarketInfo, OrderBookDetail
from .order import OrderIntent, OrderOutcome

__all__ = [
    "AccountRecord",
    "AccountSnapshot",
    "MarginMode",
    "MarketInfo",
    "OrderBookDetail",
    "OrderIntent",
    "OrderLifecycle",
    "OrderOutcome",
    "OrderType",
    "Position",
    "PositionSide",
    "RawPosition",
    "TimeInForce",
]
