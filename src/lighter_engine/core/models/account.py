# src/lighter_engine/core/models/account.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from lighter_engine.core.models.enums import PositionSide


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    # collateral on the exchange already includes unrealized PnL,
    # wallet_balance = collateral - unrealized_pnl
    wallet_balance: Decimal
    available_balance: Decimal
    unrealized_pnl: Decimal

    @property
    def total_equity(self) -> Decimal:
        return self.wallet_balance + self.unrealized_pnl


@dataclass(frozen=True, slots=True)
class Position:
    symbol: str
    side: PositionSide
    amount: Decimal               # always >= 0

    entry_price: Decimal
    mark_price: Decimal
    unrealized_pnl: Decimal
    liquidation_price: Decimal
    leverage: Optional[Decimal] = None


@dataclass(frozen=True, slots=True)
class RawPosition:
    """
    Position entry as reported by the account endpoint.

    `quantity` is signed: > 0 long, < 0 short. `initial_margin_fraction`
    is in percent (e.g. 10 for 10x).
    """

    coin: str
    market_index: int
    quantity: Decimal

    avg_entry_price: Decimal = Decimal(0)
    position_value: Decimal = Decimal(0)
    unrealized_pnl: Decimal = Decimal(0)
    realized_pnl: Decimal = Decimal(0)
    liquidation_price: Decimal = Decimal(0)
    initial_margin_fraction: Decimal = Decimal(0)
    mark_price: Optional[Decimal] = None


@dataclass(frozen=True, slots=True)
class AccountRecord:
    index: int
    collateral: Decimal
    available_balance: Decimal
    positions: tuple[RawPosition, ...] = ()
