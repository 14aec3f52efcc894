# src/lighter_engine/__init__.py
from lighter_engine.core.engine.orchestrator import LighterTrader

__all__ = ["LighterTrader"]
