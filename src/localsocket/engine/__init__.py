"""Dispatch engine: registry, quota table and train matcher."""

from localsocket.engine.dispatcher import Dispatcher
from localsocket.engine.matcher import Match, advance
from localsocket.engine.quota import QuotaTable

__all__ = ["Dispatcher", "Match", "QuotaTable", "advance"]
