from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.scroll import Row, ScrollSynchronizer, Viewport, field_extent


def _rows():
    return [Row('a', 2), Row('gap', 1, False), Row('b', 3), Row('c', 1), Row('d', 6)]


def test_field_extent_sums_live_heights():
    assert field_extent(_rows(), 'a') == (0, 2)
    assert field_extent(_rows(), 'c') == (6, 7)
    assert field_extent(_rows(), 'missing') is None


def test_sync_scrolls_minimally_down_and_up():
    sync = ScrollSynchronizer(_rows, Viewport(0, 4))
    assert sync.sync('a') is False
    assert sync.sync('c') is True
    assert sync.viewport.scroll_top == 3
    assert sync.sync('a') is True
    assert sync.viewport.scroll_top == 0


def test_tall_field_aligns_to_top():
    sync = ScrollSynchronizer(_rows, Viewport(0, 4))
    sync.sync('d')
    assert sync.viewport.scroll_top == 7


def test_zero_height_viewport_is_left_alone():
    sync = ScrollSynchronizer(_rows, Viewport(0, 0))
    assert sync.sync('d') is False
    assert sync.viewport.scroll_top == 0


def test_resize_resyncs_last_key_and_clamps():
    rows = _rows()
    sync = ScrollSynchronizer(lambda: rows, Viewport(0, 4))
    sync.sync('c')
    assert sync.viewport.scroll_top == 3
    sync.resize(20)
    assert sync.viewport.scroll_top == 0


def test_rows_inserted_above_shift_the_target():
    rows = _rows()
    sync = ScrollSynchronizer(lambda: rows, Viewport(0, 4))
    sync.sync('c')
    rows.insert(0, Row('new', 5))
    assert sync.sync('c') is True
    assert field_extent(rows, 'c') == (11, 12)
    assert sync.viewport.scroll_top == 8


def test_visible_returns_overlapping_rows():
    sync = ScrollSynchronizer(_rows, Viewport(2, 3))
    assert [r.key for r in sync.visible()] == ['gap', 'b']
