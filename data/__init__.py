"""Collaborators the routing core talks to: settings, history and the onevox binary."""

from data.bridge import BridgeResult, ProcessBridge
from data.history import HistoryEntry, HistoryStore
from data.settings import SettingsStore, StoreResult

__all__ = [
    'BridgeResult',
    'HistoryEntry',
    'HistoryStore',
    'ProcessBridge',
    'SettingsStore',
    'StoreResult',
]
