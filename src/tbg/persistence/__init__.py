from .history_store import BalanceHistoryStore
from .roster_store import RosterDocument

__all__ = [
    "BalanceHistoryStore",
    "RosterDocument",
]
