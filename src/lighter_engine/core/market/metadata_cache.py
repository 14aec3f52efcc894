# src/lighter_engine/core/market/metadata_cache.py
from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Mapping

from lighter_engine.core.errors import MarketNotFound, MetadataReloadError
from lighter_engine.core.models.market import MarketInfo
from lighter_engine.exchanges.base.exchange import MarketDataClient

log = logging.getLogger(__name__)

DEFAULT_QUOTE_SUFFIX = "USDT"


def symbol_to_coin(symbol: str, quote_suffix: str = DEFAULT_QUOTE_SUFFIX) -> str:
    """ETHUSDT -> ETH. Symbols not longer than the suffix are kept as-is."""
    s = str(symbol or "").strip().upper()
    q = quote_suffix.upper()
    if q and len(s) > len(q) and s.endswith(q):
        return s[: -len(q)]
    return s


def coin_to_symbol(coin: str, quote_suffix: str = DEFAULT_QUOTE_SUFFIX) -> str:
    return f"{str(coin).strip().upper()}{quote_suffix.upper()}"


class MarketMetadataCache:
    """
    Per-coin market metadata with copy-on-write snapshots.

      - readers always see a complete, immutable mapping
      - reload() builds a new mapping and publishes it in one assignment
      - a failed reload leaves the previous snapshot in force
    """

    def __init__(
        self,
        *,
        client: MarketDataClient,
        quote_suffix: str = DEFAULT_QUOTE_SUFFIX,
    ) -> None:
        self.client = client
        self.quote_suffix = quote_suffix
        self._snapshot: Mapping[str, MarketInfo] = MappingProxyType({})
        # serializes reloads only, reads never block
        self._reload_lock = threading.Lock()

    # ------------------------------------------------------------------
    # reload
    # ------------------------------------------------------------------
    def reload(self) -> int:
        with self._reload_lock:
            try:
                markets = list(self.client.list_markets())
            except Exception as e:
                log.warning("[METADATA] reload failed: %r", e)
                raise MetadataReloadError(f"market metadata reload failed: {e}") from e

            fresh: dict[str, MarketInfo] = {}
            for m in markets:
                fresh[m.coin.upper()] = m

            self._snapshot = MappingProxyType(fresh)

        log.info("[METADATA] loaded %d markets", len(fresh))
        return len(fresh)

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def coin_for(self, symbol: str) -> str:
        return symbol_to_coin(symbol, self.quote_suffix)

    def snapshot(self) -> Mapping[str, MarketInfo]:
        return self._snapshot

    def peek(self, symbol: str) -> MarketInfo | None:
        return self._snapshot.get(self.coin_for(symbol))

    def lookup(self, symbol: str) -> MarketInfo:
        """
        Probe, on miss reload once and probe again.
        """
        coin = self.coin_for(symbol)
        info = self._snapshot.get(coin)
        if info is not None:
            return info

        log.info("[METADATA] cache miss coin=%s -> reload", coin)
        try:
            self.reload()
        except MetadataReloadError as e:
            raise MarketNotFound(f"market not found for {symbol}", symbol=symbol) from e

        info = self._snapshot.get(coin)
        if info is None:
            raise MarketNotFound(f"market not found for {symbol}", symbol=symbol)
        return info

    def coins(self) -> list[str]:
        return sorted(self._snapshot.keys())

    def __len__(self) -> int:
        return len(self._snapshot)
