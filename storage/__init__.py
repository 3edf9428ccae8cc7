"""
Storage Module
Research history persistence.
"""
from .history_store import HistoryStore, InMemoryHistoryStore

__all__ = [
    "HistoryStore",
    "InMemoryHistoryStore",
]
