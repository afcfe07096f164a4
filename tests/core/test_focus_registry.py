from __future__ import annotations

import os
import sys
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.errors import InvariantGuard, InvariantViolation
from core.fields import FieldState, ToggleField
from core.registry import FocusRegistry


def _registry(*ids, strict=True):
    return FocusRegistry([ToggleField(i, i) for i in ids], guard=InvariantGuard(strict=strict))


def test_focus_next_cycles_through_all_fields():
    reg = _registry('A', 'B', 'C')
    reg.focus_at(0)
    assert reg.focus_next().field_id == 'B'
    assert reg.focus_next().field_id == 'C'
    assert reg.focus_next().field_id == 'A'
    assert reg.current_index == 0


def test_focus_prev_from_nothing_goes_to_last():
    reg = _registry('A', 'B', 'C')
    assert reg.focus_prev().field_id == 'C'
    assert reg.focus_prev().field_id == 'B'


def test_only_one_field_is_active():
    reg = _registry('A', 'B', 'C')
    reg.focus_at(0)
    reg.focus_at(2)
    states = [f.state for f in reg]
    assert states == [FieldState.IDLE, FieldState.IDLE, FieldState.FOCUSED]
    assert reg.check_invariant()


def test_out_of_range_fails_loudly_when_strict():
    reg = _registry('A')
    with pytest.raises(InvariantViolation):
        reg.focus_at(5)


def test_out_of_range_is_a_noop_when_lenient():
    guard = InvariantGuard(strict=False)
    reg = FocusRegistry([ToggleField('A', 'A')], guard=guard)
    reg.focus_at(0)
    assert reg.focus_at(3) is None
    assert reg.current_index == 0
    assert guard.violations == 1


def test_empty_registry_navigation_returns_none():
    reg = _registry()
    assert reg.focus_next() is None
    assert reg.focus_prev() is None


def test_listeners_hear_focus_changes():
    reg = _registry('A', 'B')
    heard = []
    reg.add_listener(lambda f: heard.append(f.field_id))
    reg.focus_next()
    reg.focus_id('B')
    assert heard == ['A', 'B']


def test_blur_all_clears_current():
    reg = _registry('A', 'B')
    reg.focus_at(1)
    reg.blur_all()
    assert reg.current is None
    assert all(f.state is FieldState.IDLE for f in reg)
