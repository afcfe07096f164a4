from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.errors import InvariantGuard
from core.modal import ModalKind
from core.router import AppState, Router
from data.history import HistoryEntry
from data.settings import default_settings
from panels import default_tabs
from tui.widgets.overlay import overlay_lines
from tui.widgets.panel_view import render_panel
from tui.widgets.tab_bar import TAB_PADDING, TAB_WIDTH, tab_spans


def _router(tab, history=()):
    state = AppState(settings=default_settings(), history=list(history), active_tab=tab)
    router = Router(state, default_tabs(), guard=InvariantGuard(strict=True))
    router.start()
    return router


def test_rendered_line_count_matches_row_heights():
    router = _router(1)
    panel = router.panel
    lines = render_panel(panel, 60)
    assert len(lines) == sum(r.height for r in panel.rows())


def test_history_cards_render_with_marker_on_selection():
    entries = [HistoryEntry(1, 100, 'first'), HistoryEntry(2, 200, 'second')]
    router = _router(0, entries)
    router.enter_content()
    lines = [line.plain for line in render_panel(router.panel, 60)]
    assert len(lines) == 6
    assert lines[0].startswith('▶ second')
    assert lines[3].startswith('  first')


def test_picker_overlay_lists_options_with_cursor():
    router = _router(1)
    session = router.modals.open(ModalKind.PICKER, title='Backend', options=['energy', 'silero'],
                                 lines=['simple', 'neural'], draft_index=1)
    text = [line.plain for line in overlay_lines(session)]
    assert text[0] == 'Backend'
    assert '› silero' in text
    assert 'neural' in text


def test_tab_spans_follow_tab_width():
    spans = tab_spans(['History', 'Config'], 0)
    assert spans == [(TAB_PADDING, TAB_PADDING + TAB_WIDTH), (TAB_PADDING + TAB_WIDTH, TAB_PADDING + 2 * TAB_WIDTH)]
