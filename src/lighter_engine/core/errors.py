# src/lighter_engine/core/errors.py
from __future__ import annotations

from typing import Iterable, Optional


class ExecutionError(RuntimeError):
    """
    Base error of the execution engine.

    The underlying transport / signing error is kept as __cause__
    (raise ... from exc). `warnings` lists best-effort steps that failed
    before the workflow aborted.
    """

    def __init__(
        self,
        message: str,
        *,
        symbol: Optional[str] = None,
        warnings: Iterable[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.symbol = symbol
        self.warnings: list[str] = list(warnings or [])


class MarketNotFound(ExecutionError):
    pass


class MetadataReloadError(ExecutionError):
    pass


class AccountFetchError(ExecutionError):
    pass


class PriceUnavailable(ExecutionError):
    """No mark price and no two-sided book."""


class NoPositionToClose(ExecutionError):
    pass


class LeverageSetFailed(ExecutionError):
    pass


class OrderSubmissionFailed(ExecutionError):
    pass
