"""History panel: newest-first transcription cards with copy/export/expand/delete."""

from __future__ import annotations

import os
from typing import List, Optional, Tuple

from core.events import KeyEvent
from core.modal import ModalKind, ModalSession
from core.scroll import Row
from data.history import (
    HistoryEntry,
    export_line,
    format_duration,
    format_timestamp,
    newest_first,
    remove_entry,
    truncate_text,
)
from panels.base import Panel

PREVIEW_CHARS = 80
WRAP_PREVIEW_CHARS = 160
DEFAULT_EXPORT_DIR = os.path.join('~', 'onevox-exports')
EXPORT_FILE = 'transcriptions.txt'


def entry_key(entry: HistoryEntry) -> str:
    return f'entry:{entry.id}'


def card_height(entry: HistoryEntry) -> int:
    # text (one or two lines) + subtitle + spacer
    return (2 if len(entry.text) > PREVIEW_CHARS else 1) + 2


def card_preview(entry: HistoryEntry) -> str:
    limit = WRAP_PREVIEW_CHARS if len(entry.text) > PREVIEW_CHARS else PREVIEW_CHARS
    return truncate_text(entry.text.replace('\n', ' '), limit)


def card_subtitle(entry: HistoryEntry) -> str:
    parts = [entry.model or 'unknown', format_timestamp(entry.timestamp), format_duration(entry.duration_ms)]
    if entry.confidence is not None:
        parts.append(f'{round(entry.confidence * 100)}%')
    return ' • '.join(parts)


class HistoryPanel(Panel):
    """Cards are not registry fields; focus here is a card cursor.

    The cursor is still kept visible through the same scroll synchronizer.
    """

    panel_id = 'history'
    title = 'Transcription History'

    def __init__(self, router) -> None:
        super().__init__(router)
        self.selected = 0
        self.focused = False

    # ----- data ----------------------------------------------------------
    @property
    def entries(self) -> List[HistoryEntry]:
        return newest_first(self.state.history)

    def selected_entry(self) -> Optional[HistoryEntry]:
        entries = self.entries
        if 0 <= self.selected < len(entries):
            return entries[self.selected]
        return None

    def rows(self) -> List[Row]:
        entries = self.entries
        if not entries:
            return [
                Row('empty:title', 1, False, 'No transcription history yet'),
                Row('empty:hint', 1, False, 'Start dictating to see entries here'),
            ]
        return [Row(entry_key(e), card_height(e)) for e in entries]

    # ----- focus ---------------------------------------------------------
    def _select(self, index: int) -> None:
        entries = self.entries
        if not entries:
            self.selected = 0
            return
        self.selected = min(max(index, 0), len(entries) - 1)
        self.scroll.sync(entry_key(entries[self.selected]))

    def focus_first(self) -> None:
        self.scroll.reset()
        self.focused = True
        self._select(0)

    def blur_all(self) -> None:
        self.focused = False

    def teardown(self) -> None:
        super().teardown()
        self.focused = False

    def focus_position(self) -> Tuple[int, Optional[str]]:
        entry = self.selected_entry()
        if not self.focused or entry is None:
            return -1, None
        return self.selected, entry_key(entry)

    def restore_position(self, index: int, key: Optional[str]) -> None:
        entries = self.entries
        target = -1
        if key:
            for i, e in enumerate(entries):
                if entry_key(e) == key:
                    target = i
                    break
        if target < 0:
            target = index
        self.focused = True
        self._select(target)

    def click(self, y: int) -> bool:
        key = self.hit_test(y)
        if key is None:
            return False
        for i, e in enumerate(self.entries):
            if entry_key(e) == key:
                self.focused = True
                self._select(i)
                return True
        return False

    # ----- input ---------------------------------------------------------
    def handle_key(self, event: KeyEvent) -> bool:
        if event.is_('escape'):
            self.router.leave_content()
            return True
        entries = self.entries
        if not entries:
            return False
        if event.is_('down', 'j'):
            self._select(self.selected + 1)
            return True
        if event.is_('up', 'k'):
            self._select(self.selected - 1)
            return True
        entry = self.selected_entry()
        if entry is None:
            return False
        if event.is_('c'):
            self.copy_entry(entry)
            return True
        if event.is_('e'):
            self.export_entry(entry)
            return True
        if event.is_('enter'):
            self.expand_entry(entry)
            return True
        if event.is_('d'):
            self.delete_entry(entry)
            return True
        if event.is_('D', 'shift+d'):
            self.clear_all()
            return True
        return False

    # ----- actions -------------------------------------------------------
    def copy_entry(self, entry: HistoryEntry) -> bool:
        clipboard = self.router.clipboard
        if clipboard is None:
            self.status('✗ Failed to copy: clipboard unavailable', 'error')
            return False
        outcome = clipboard.copy(entry.text)
        if outcome.success:
            self.status('✓ Copied to clipboard')
            return True
        self.status(f'✗ Failed to copy: {outcome.error or "clipboard unavailable"}', 'error')
        return False

    def export_path(self) -> str:
        base = self.router.export_dir or DEFAULT_EXPORT_DIR
        return os.path.join(os.path.expanduser(base), EXPORT_FILE)

    def export_entry(self, entry: HistoryEntry) -> bool:
        path = self.export_path()
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'a', encoding='utf-8') as f:
                f.write(export_line(entry))
        except OSError as e:
            self.status(f'✗ Failed to export: {e}', 'error')
            return False
        self.status(f'✓ Exported to {path}')
        return True

    def expand_entry(self, entry: HistoryEntry) -> Optional[ModalSession]:
        meta = (f'Model: {entry.model}  │  {format_timestamp(entry.timestamp)}  │  '
                f'Duration: {format_duration(entry.duration_ms)}')
        return self.router.modals.open(
            ModalKind.EXPAND,
            title='Full Transcription',
            lines=entry.text.splitlines() + ['', meta],
            hint='Press Esc or Enter to close',
        )

    def delete_entry(self, entry: HistoryEntry) -> Optional[ModalSession]:
        def show_detail(session: ModalSession, event: KeyEvent) -> bool:
            if not event.is_('v'):
                return False
            session.open_layer(
                ModalKind.DETAIL,
                title=f'Entry #{entry.id}',
                lines=entry.text.splitlines() + ['', card_subtitle(entry)],
                hint='Esc or v to go back',
            )
            return True

        return self.router.modals.open(
            ModalKind.CONFIRM,
            title='Delete Entry',
            lines=['Delete this transcription?', f'"{truncate_text(entry.text, 50)}"'],
            hint='y confirm  n/Esc cancel  v details',
            on_commit=lambda session: self._remove(entry),
            on_key=show_detail,
        )

    def clear_all(self) -> Optional[ModalSession]:
        count = len(self.state.history)
        return self.router.modals.open(
            ModalKind.CONFIRM,
            title='Clear All',
            lines=[f'Delete all {count} transcription entries?', 'This cannot be undone.'],
            hint='y confirm  n/Esc cancel',
            on_commit=lambda session: self._clear(),
        )

    def _remove(self, entry: HistoryEntry) -> None:
        self.state.history = remove_entry(self.state.history, entry.id)
        if self._persist():
            self.status('✓ Entry deleted')
        self._select(self.selected)

    def _clear(self) -> None:
        self.state.history = []
        if self._persist():
            self.status('✓ All entries cleared')
        self.selected = 0
        self.scroll.reset()

    def _persist(self) -> bool:
        store = self.router.history_store
        if store is None:
            return True
        result = store.save(self.state.history)
        if not result.ok:
            self.status(f'✗ Failed to save history: {result.error}', 'error')
            return False
        return True
