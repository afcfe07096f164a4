from __future__ import annotations

import os
import sys
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.events import KeyEvent
from core.fields import FieldState, ListField, Option, RecorderField, StepperField, ToggleField


def _opts(*values):
    return [Option(v) for v in values]


def test_inline_list_moves_cursor_and_commits_on_enter():
    changes = []
    f = ListField('mode', 'Mode', _opts('a', 'b', 'c'), selected='a', on_change=lambda i, o: changes.append((i, o.value)))
    f.focus()
    assert f.activate(KeyEvent('down')) is True
    assert f.cursor == 1
    assert f.selected == 0
    assert f.activate(KeyEvent('enter')) is True
    assert f.value == 'b'
    assert changes == [(1, 'b')]


def test_inline_list_at_edge_does_not_consume():
    f = ListField('mode', 'Mode', _opts('a', 'b'), selected='a')
    f.focus()
    assert f.activate(KeyEvent('up')) is False
    f.activate(KeyEvent('j'))
    assert f.activate(KeyEvent('j')) is False


def test_list_blur_resets_cursor_to_selection():
    f = ListField('mode', 'Mode', _opts('a', 'b'), selected='a')
    f.focus()
    f.move_cursor(1)
    f.blur()
    assert f.cursor == 0
    assert f.state is FieldState.IDLE


def test_list_height_tracks_options_unless_picker():
    assert ListField('x', 'X', _opts('a', 'b', 'c')).height == 4
    assert ListField('x', 'X', []).height == 2
    assert ListField('x', 'X', _opts('a', 'b', 'c'), picker=True).height == 1


def test_picker_list_delegates_enter():
    opened = []
    f = ListField('x', 'X', _opts('a', 'b'), picker=True, open_picker=lambda fld: opened.append(fld) or True)
    f.focus()
    assert f.activate(KeyEvent('enter')) is True
    assert opened == [f]
    assert f.activate(KeyEvent('down')) is False


def test_set_options_keeps_current_value():
    f = ListField('x', 'X', _opts('a', 'b'), selected='b')
    f.set_options(_opts('z', 'b', 'y'))
    assert f.value == 'b'
    assert f.selected == 1


def test_stepper_is_bounded_and_consumes_at_edges():
    changes = []
    f = StepperField('rate', 'Rate', ['1', '2', '3'], value='1', on_change=lambda v, i: changes.append(v))
    assert f.activate(KeyEvent('left')) is True
    assert f.value == '1'
    assert changes == []
    f.activate(KeyEvent('l'))
    f.activate(KeyEvent('right'))
    f.activate(KeyEvent('right'))
    assert f.value == '3'
    assert changes == ['2', '3']


def test_stepper_requires_values():
    with pytest.raises(ValueError):
        StepperField('rate', 'Rate', [])


def test_toggle_flips_on_space_or_enter():
    changes = []
    f = ToggleField('t', 'T', value=False, on_change=changes.append)
    assert f.activate(KeyEvent('space', ' ')) is True
    assert f.activate(KeyEvent('enter')) is True
    assert f.activate(KeyEvent('x', 'x')) is False
    assert changes == [True, False]


def test_recorder_enters_capture_on_focus_and_stores_chord():
    changes = []
    f = RecorderField('trigger', 'Trigger', value='Ctrl+A', on_change=changes.append)
    f.focus()
    assert f.state is FieldState.CAPTURE
    assert f.activate(KeyEvent('ctrl+shift+space')) is True
    assert f.value == 'Ctrl+Shift+Space'
    assert f.state is FieldState.FOCUSED
    assert changes == ['Ctrl+Shift+Space']


def test_recorder_capture_swallows_unrecognized_and_escape_cancels():
    f = RecorderField('trigger', 'Trigger', value='Ctrl+A')
    f.focus()
    assert f.activate(KeyEvent('shift')) is True
    assert f.capturing
    assert f.activate(KeyEvent('escape')) is True
    assert f.state is FieldState.FOCUSED
    assert f.value == 'Ctrl+A'
    assert f.activate(KeyEvent('enter')) is True
    assert f.capturing
