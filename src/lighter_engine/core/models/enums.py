# src/lighter_engine/core/models/enums.py
from __future__ import annotations
from enum import Enum


class PositionSide(str, Enum):
    LONG = "long"
    SHORT = "short"

    @classmethod
    def parse(cls, v: "PositionSide | str") -> "PositionSide":
        if isinstance(v, PositionSide):
            return v
        s = str(v or "").strip().lower()
        if s == "long":
            return cls.LONG
        if s == "short":
            return cls.SHORT
        raise ValueError(f"Unknown position side: {v!r}")

    def opposite(self) -> "PositionSide":
        return PositionSide.SHORT if self is PositionSide.LONG else PositionSide.LONG


class OrderType(str, Enum):
    LIMIT = "limit"
    STOP_LOSS = "stopLoss"
    TAKE_PROFIT = "takeProfit"


class TimeInForce(str, Enum):
    IOC = "IOC"


class MarginMode(str, Enum):
    CROSS = "cross"
    ISOLATED = "isolated"


class OrderLifecycle(str, Enum):
    # the engine never observes fills
    SUBMITTED = "submitted"
