"""Transcription history store (``history.json`` in the daemon's data dir)."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from data.settings import StoreResult


@dataclass
class HistoryEntry:
    id: int
    timestamp: int  # unix epoch seconds
    text: str
    model: str = ''
    duration_ms: int = 0
    confidence: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> 'HistoryEntry':
        confidence = raw.get('confidence')
        return cls(
            id=int(raw.get('id', 0)),
            timestamp=int(raw.get('timestamp', 0) or 0),
            text=str(raw.get('text', '')),
            model=str(raw.get('model', '') or ''),
            duration_ms=int(raw.get('duration_ms', 0) or 0),
            confidence=None if confidence is None else float(confidence),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def data_dir() -> str:
    override = os.environ.get('ONEVOX_DATA_DIR')
    if override:
        return override
    home = os.path.expanduser('~')
    if sys.platform == 'win32':
        return os.path.join(os.environ.get('APPDATA') or os.path.join(home, 'AppData', 'Roaming'), 'onevox')
    if sys.platform == 'darwin':
        return os.path.join(home, 'Library', 'Application Support', 'onevox')
    return os.path.join(os.environ.get('XDG_DATA_HOME') or os.path.join(home, '.local', 'share'), 'onevox')


class HistoryStore:
    def __init__(self, path: Optional[str] = None, logger=None) -> None:
        self._path = path
        self.logger = logger
        self.last_error: Optional[str] = None

    @property
    def path(self) -> str:
        return self._path or os.path.join(data_dir(), 'history.json')

    def load(self) -> List[HistoryEntry]:
        self.last_error = None
        path = self.path
        if not os.path.exists(path):
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            self.last_error = f'Could not read {path}: {e}'
            self._log('history_load_failed', {'path': path, 'error': str(e)})
            return []
        if not isinstance(raw, list):
            self.last_error = f'Unexpected history format in {path}'
            return []
        entries = []
        for item in raw:
            if isinstance(item, dict):
                try:
                    entries.append(HistoryEntry.from_dict(item))
                except (TypeError, ValueError):
                    continue
        self._log('history_loaded', {'path': path, 'count': len(entries)})
        return entries

    def save(self, entries: List[HistoryEntry]) -> StoreResult:
        path = self.path
        try:
            os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump([e.to_dict() for e in entries], f, indent=2, ensure_ascii=False)
        except OSError as e:
            self.last_error = str(e)
            self._log('history_save_failed', {'path': path, 'error': str(e)})
            return StoreResult(False, path, str(e))
        self._log('history_saved', {'path': path, 'count': len(entries)})
        return StoreResult(True, path)

    def _log(self, kind: str, data: dict) -> None:
        if self.logger is None:
            return
        try:
            self.logger.store_event(kind, data, component='data.history')
        except Exception:
            pass


# ----- display helpers ---------------------------------------------------

def newest_first(entries: List[HistoryEntry]) -> List[HistoryEntry]:
    return sorted(entries, key=lambda e: e.timestamp, reverse=True)


def remove_entry(entries: List[HistoryEntry], entry_id: int) -> List[HistoryEntry]:
    return [e for e in entries if e.id != entry_id]


def format_timestamp(epoch: int) -> str:
    try:
        return datetime.fromtimestamp(epoch).strftime('%Y-%m-%d %H:%M:%S')
    except (ValueError, OverflowError, OSError):
        return '????-??-?? ??:??:??'


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f'{ms}ms'
    return f'{ms / 1000:.1f}s'


def truncate_text(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + '…'


def export_line(entry: HistoryEntry) -> str:
    return f'[{format_timestamp(entry.timestamp)}] ({entry.model}) {entry.text}\n'
