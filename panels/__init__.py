"""Content panels shown under the tab bar."""

from panels.config import ConfigPanel
from panels.history import HistoryPanel


def default_tabs():
    """Tab titles and panel factories in tab-bar order (0 = History, 1 = Config)."""
    return [('History', HistoryPanel), ('Config', ConfigPanel)]


__all__ = ['ConfigPanel', 'HistoryPanel', 'default_tabs']
