# src/lighter_engine/core/engine/orchestrator.py
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator, Optional

from lighter_engine.core.account.snapshot_reader import AccountSnapshotReader
from lighter_engine.core.errors import (
    ExecutionError,
    LeverageSetFailed,
    MetadataReloadError,
    NoPositionToClose,
    OrderSubmissionFailed,
    PriceUnavailable,
)
from lighter_engine.core.engine.symbol_locks import SymbolLocks
from lighter_engine.core.market.codec import FALLBACK_DECIMALS, Number, NumericCodec, to_decimal
from lighter_engine.core.market.metadata_cache import DEFAULT_QUOTE_SUFFIX, MarketMetadataCache
from lighter_engine.core.models.account import AccountSnapshot, Position
from lighter_engine.core.models.enums import MarginMode, OrderType, PositionSide, TimeInForce
from lighter_engine.core.models.order import OrderIntent, OrderOutcome
from lighter_engine.core.utils.idempotency import ClientOrderIndexer
from lighter_engine.exchanges.base.exchange import MarketDataClient, TxSubmitter
from lighter_engine.exchanges.lighter.dry_run import DryRunSubmitter
from lighter_engine.exchanges.lighter.rest import LighterREST

log = logging.getLogger(__name__)

# marketable-limit offset used to emulate market orders with IOC
BID_OFFSET = Decimal("1.01")
ASK_OFFSET = Decimal("0.99")

# IMF is expressed in 1/10000 of notional on the wire
IMF_SCALE = 10_000

PROTECTIVE_EXPIRY_MS = 30 * 24 * 60 * 60 * 1000


def leverage_to_imf(leverage: int) -> int:
    lev = int(leverage)
    if lev < 1 or IMF_SCALE // lev < 1:
        raise ValueError(f"invalid leverage {leverage!r}")
    return IMF_SCALE // lev


class LighterTrader:
    """
    Order workflow orchestrator for Lighter perpetuals.

    Workflows:
      open   : cancel stale (best-effort) -> leverage -> market -> price -> IOC submit
      close  : resolve qty -> market -> price -> reduce-only IOC submit -> cancel rest (best-effort)
      protect: market -> stop-loss / take-profit reduce-only order, 30 day expiry

    Every state-mutating call holds the per-symbol lock for its whole
    duration. Nothing is retried and nothing is rolled back: if leverage
    was changed and the order then fails, leverage stays changed.
    """

    name = "lighter"

    def __init__(
        self,
        *,
        data_client: MarketDataClient,
        submitter: TxSubmitter,
        account_index: int,
        quote_suffix: str = DEFAULT_QUOTE_SUFFIX,
        strict_precision: bool = False,
        fallback_decimals: int = FALLBACK_DECIMALS,
        default_margin_mode: MarginMode = MarginMode.CROSS,
        load_markets: bool = True,
        clock=time.time,
    ) -> None:
        self.data_client = data_client
        self.submitter = submitter
        self.account_index = int(account_index)
        self.default_margin_mode = MarginMode(default_margin_mode)
        self._clock = clock

        self.cache = MarketMetadataCache(client=data_client, quote_suffix=quote_suffix)
        self.codec = NumericCodec(
            cache=self.cache,
            strict=strict_precision,
            fallback_decimals=fallback_decimals,
        )
        self.reader = AccountSnapshotReader(
            client=data_client,
            account_index=self.account_index,
            quote_suffix=quote_suffix,
        )
        self.indexer = ClientOrderIndexer(clock)
        self._locks = SymbolLocks(key_fn=self.cache.coin_for)
        self._margin_modes: dict[str, MarginMode] = {}

        if load_markets:
            try:
                self.cache.reload()
            except MetadataReloadError as e:
                # lookups reload on miss, so start anyway
                log.warning("[TRADER] initial market load failed: %s", e)

        log.info(
            "[TRADER] ready account=%s markets=%d strict_precision=%s",
            self.account_index, len(self.cache), self.codec.strict,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    @staticmethod
    @contextmanager
    def _carry_warnings(warnings: list[str]) -> Iterator[None]:
        try:
            yield
        except ExecutionError as e:
            e.warnings = list(warnings) + [w for w in e.warnings if w not in warnings]
            raise

    def _cancel_best_effort(self, symbol: str, warnings: list[str], *, stage: str) -> None:
        try:
            tx_hash = self.submitter.cancel_all_orders(symbol=symbol, timestamp_ms=self._now_ms())
        except Exception as e:
            msg = f"{stage}: cancel all orders on {symbol} failed: {e}"
            log.warning("[CANCEL] %s", msg)
            warnings.append(msg)
            return
        log.info("[CANCEL] %s %s hash=%s", stage, symbol, tx_hash)

    def _update_leverage(self, symbol: str, leverage: int) -> str:
        imf = leverage_to_imf(leverage)
        lev = int(leverage)

        info = self.cache.lookup(symbol)
        mode = self._margin_modes.get(info.coin, self.default_margin_mode)

        try:
            tx_hash = self.submitter.update_leverage(
                market_index=info.market_index,
                initial_margin_fraction=imf,
                margin_mode=mode,
            )
        except Exception as e:
            raise LeverageSetFailed(f"set leverage {lev}x on {symbol} failed: {e}", symbol=symbol) from e

        log.info(
            "[LEVERAGE] %s leverage=%dx imf=%d mode=%s hash=%s",
            symbol, lev, imf, mode.value, tx_hash,
        )
        return tx_hash

    def _marketable_intent(
        self,
        symbol: str,
        quantity: Decimal,
        *,
        is_ask: bool,
        reduce_only: bool,
    ) -> OrderIntent:
        info = self.cache.lookup(symbol)
        price = self.get_market_price(symbol)

        # cross the book by 1% so the IOC fills immediately
        limit = price * (ASK_OFFSET if is_ask else BID_OFFSET)

        return OrderIntent(
            symbol=symbol,
            market_index=info.market_index,
            client_order_index=self.indexer.next(),
            raw_quantity=self.codec.to_raw_size(symbol, quantity),
            limit_price=self.codec.to_raw_price(symbol, limit),
            is_ask=is_ask,
            reduce_only=reduce_only,
            order_type=OrderType.LIMIT,
            time_in_force=TimeInForce.IOC,
        )

    def _submit(self, intent: OrderIntent) -> OrderOutcome:
        log.info("[ORDER SUBMIT] %r", intent)
        try:
            tx_hash = self.submitter.create_order(intent)
        except Exception as e:
            raise OrderSubmissionFailed(
                f"order submission failed for {intent.symbol}: {e}",
                symbol=intent.symbol,
            ) from e

        return OrderOutcome(
            client_order_index=intent.client_order_index,
            symbol=intent.symbol,
            submission_handle=tx_hash,
            intent=intent,
        )

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get_balance(self) -> AccountSnapshot:
        return self.reader.get_balance()

    def get_positions(self) -> list[Position]:
        return list(self.reader.get_positions())

    def get_market_price(self, symbol: str) -> Decimal:
        """
        Mark price when available, otherwise the mid of best ask / best bid.
        """
        info = self.cache.lookup(symbol)
        try:
            detail = self.data_client.get_order_book_detail(info.market_index)
        except Exception as e:
            raise PriceUnavailable(f"order book fetch failed for {symbol}: {e}", symbol=symbol) from e

        if detail.mark_price is not None:
            return detail.mark_price
        if detail.best_ask is not None and detail.best_bid is not None:
            return (detail.best_ask + detail.best_bid) / 2
        raise PriceUnavailable(f"no price for {symbol}", symbol=symbol)

    def format_quantity(self, symbol: str, quantity: Number) -> str:
        return self.codec.format_quantity(symbol, quantity)

    def reload_markets(self) -> int:
        return self.cache.reload()

    # ------------------------------------------------------------------
    # leverage / margin
    # ------------------------------------------------------------------
    def set_leverage(self, symbol: str, leverage: int) -> str:
        with self._locks.hold(symbol):
            return self._update_leverage(symbol, leverage)

    def set_margin_mode(self, symbol: str, is_cross: bool) -> None:
        """
        Lighter applies margin mode through the leverage transaction, so the
        mode is remembered and sent with the next leverage update.
        """
        mode = MarginMode.CROSS if is_cross else MarginMode.ISOLATED
        with self._locks.hold(symbol):
            self._margin_modes[self.cache.coin_for(symbol)] = mode
        log.info("[MARGIN] %s -> %s (applied on next leverage update)", symbol, mode.value)

    # ------------------------------------------------------------------
    # open
    # ------------------------------------------------------------------
    def _open(self, symbol: str, quantity: Number, leverage: int, *, side: PositionSide) -> OrderOutcome:
        qty = to_decimal(quantity)
        if qty <= 0:
            raise ValueError(f"open quantity must be positive, got {quantity!r}")
        # rejected before the stale-order cancel touches the book
        leverage_to_imf(leverage)

        warnings: list[str] = []
        with self._locks.hold(symbol), self._carry_warnings(warnings):
            self._cancel_best_effort(symbol, warnings, stage="pre-open")
            self._update_leverage(symbol, leverage)

            intent = self._marketable_intent(
                symbol, qty,
                is_ask=side is PositionSide.SHORT,
                reduce_only=False,
            )
            outcome = self._submit(intent)
            outcome.warnings = list(warnings)

        log.info(
            "[OPEN] %s %s qty=%s leverage=%sx coi=%s hash=%s",
            side.value, symbol, qty, leverage, outcome.client_order_index, outcome.submission_handle,
        )
        return outcome

    def open_long(self, symbol: str, quantity: Number, leverage: int) -> OrderOutcome:
        return self._open(symbol, quantity, leverage, side=PositionSide.LONG)

    def open_short(self, symbol: str, quantity: Number, leverage: int) -> OrderOutcome:
        return self._open(symbol, quantity, leverage, side=PositionSide.SHORT)

    # ------------------------------------------------------------------
    # close
    # ------------------------------------------------------------------
    def _close(self, symbol: str, quantity: Number, *, side: PositionSide) -> OrderOutcome:
        qty = to_decimal(quantity)
        if qty < 0:
            raise ValueError(f"close quantity must be >= 0, got {quantity!r}")

        warnings: list[str] = []
        with self._locks.hold(symbol), self._carry_warnings(warnings):
            if qty == 0:
                pos = self.reader.find_position(symbol, side)
                if pos is None:
                    raise NoPositionToClose(f"no {side.value} position on {symbol}", symbol=symbol)
                qty = pos.amount

            intent = self._marketable_intent(
                symbol, qty,
                is_ask=side.opposite() is PositionSide.SHORT,
                reduce_only=True,
            )
            try:
                outcome = self._submit(intent)
            finally:
                # drop protective orders left over from the closed position
                self._cancel_best_effort(symbol, warnings, stage="post-close")
            outcome.warnings = list(warnings)

        log.info(
            "[CLOSE] %s %s qty=%s coi=%s hash=%s",
            side.value, symbol, qty, outcome.client_order_index, outcome.submission_handle,
        )
        return outcome

    def close_long(self, symbol: str, quantity: Number = 0) -> OrderOutcome:
        return self._close(symbol, quantity, side=PositionSide.LONG)

    def close_short(self, symbol: str, quantity: Number = 0) -> OrderOutcome:
        return self._close(symbol, quantity, side=PositionSide.SHORT)

    # ------------------------------------------------------------------
    # protective orders
    # ------------------------------------------------------------------
    def _protective(
        self,
        symbol: str,
        position_side: PositionSide | str,
        quantity: Number,
        price: Number,
        *,
        order_type: OrderType,
    ) -> OrderOutcome:
        side = PositionSide.parse(position_side)
        if to_decimal(quantity) <= 0:
            raise ValueError(f"{order_type.value} quantity must be positive, got {quantity!r}")
        if to_decimal(price) <= 0:
            raise ValueError(f"{order_type.value} price must be positive, got {price!r}")

        with self._locks.hold(symbol):
            info = self.cache.lookup(symbol)
            raw_price = self.codec.to_raw_price(symbol, price)
            raw_size = self.codec.to_raw_size(symbol, quantity)
            if raw_size <= 0:
                raise ValueError(f"{order_type.value} quantity {quantity!r} truncates to zero on {symbol}")

            intent = OrderIntent(
                symbol=symbol,
                market_index=info.market_index,
                client_order_index=self.indexer.next(),
                raw_quantity=raw_size,
                limit_price=raw_price,
                is_ask=side.opposite() is PositionSide.SHORT,
                reduce_only=True,
                order_type=order_type,
                time_in_force=TimeInForce.IOC,
                trigger_price=raw_price,
                expiry_ms=self._now_ms() + PROTECTIVE_EXPIRY_MS,
            )
            outcome = self._submit(intent)

        log.info(
            "[PROTECT] %s %s %s qty=%s price=%s hash=%s",
            order_type.value, side.value, symbol, quantity, price, outcome.submission_handle,
        )
        return outcome

    def set_stop_loss(
        self,
        symbol: str,
        position_side: PositionSide | str,
        quantity: Number,
        stop_price: Number,
    ) -> OrderOutcome:
        return self._protective(symbol, position_side, quantity, stop_price, order_type=OrderType.STOP_LOSS)

    def set_take_profit(
        self,
        symbol: str,
        position_side: PositionSide | str,
        quantity: Number,
        take_profit_price: Number,
    ) -> OrderOutcome:
        return self._protective(
            symbol, position_side, quantity, take_profit_price, order_type=OrderType.TAKE_PROFIT,
        )

    # ------------------------------------------------------------------
    # cancel
    # ------------------------------------------------------------------
    def cancel_all_orders(self, symbol: str) -> str:
        with self._locks.hold(symbol):
            try:
                tx_hash = self.submitter.cancel_all_orders(symbol=symbol, timestamp_ms=self._now_ms())
            except Exception as e:
                raise OrderSubmissionFailed(f"cancel all orders on {symbol} failed: {e}", symbol=symbol) from e

        log.info("[CANCEL] %s hash=%s", symbol, tx_hash)
        return tx_hash

    # ------------------------------------------------------------------
    # construction from config
    # ------------------------------------------------------------------
    @classmethod
    def from_config(
        cls,
        cfg,
        *,
        submitter: Optional[TxSubmitter] = None,
        data_client: Optional[MarketDataClient] = None,
    ) -> "LighterTrader":
        if data_client is None:
            data_client = LighterREST(base_url=cfg.endpoint, timeout=cfg.timeout_sec)

        if submitter is None:
            if not cfg.dry_run:
                raise RuntimeError("DRY_RUN=0 requires a TxSubmitter (signer) to be provided")
            submitter = DryRunSubmitter(
                account_index=cfg.account_index,
                api_key_index=cfg.api_key_index,
            )

        return cls(
            data_client=data_client,
            submitter=submitter,
            account_index=cfg.account_index,
            quote_suffix=cfg.quote_suffix,
            strict_precision=cfg.strict_precision,
            fallback_decimals=cfg.fallback_decimals,
            default_margin_mode=cfg.margin_mode,
        )
