from __future__ import annotations

import os
import sys
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.errors import InvariantGuard, InvariantViolation
from core.events import KeyEvent, MouseEvent
from core.fields import FieldState, ToggleField
from core.interceptors import InterceptorStack
from core.modal import ModalController, ModalKind
from core.registry import FocusRegistry


def _setup(strict=True):
    reg = FocusRegistry([ToggleField(f'f{i}', f'F{i}') for i in range(4)], guard=InvariantGuard(strict=strict))
    stack = InterceptorStack()

    def restore(index):
        if index is not None and index >= 0:
            reg.focus_at(index)

    modals = ModalController(
        stack,
        snapshot_focus=lambda: reg.current_index,
        restore_focus=restore,
        guard=InvariantGuard(strict=strict),
    )
    return reg, stack, modals


def test_nested_detail_inside_confirm_restores_depth_and_focus():
    reg, stack, modals = _setup()
    reg.focus_at(2)

    confirm = modals.open(ModalKind.CONFIRM, title='Delete?')
    assert stack.depth == 1

    detail = confirm.open_layer(ModalKind.DETAIL, title='Details')
    assert detail is not None
    assert stack.depth == 2

    # Focus moved while the overlay was up; closing the nested layer leaves it alone
    reg.focus_at(0)
    assert stack.dispatch(KeyEvent('escape')) is True
    assert stack.depth == 1
    assert modals.is_open
    assert reg.current_index == 0

    assert stack.dispatch(KeyEvent('escape')) is True
    assert stack.depth == 0
    assert not modals.is_open
    assert reg.current_index == 2
    assert reg.current.state is FieldState.FOCUSED


def test_closing_outer_session_drops_nested_layers_too():
    _, stack, modals = _setup()
    session = modals.open(ModalKind.CONFIRM)
    session.open_layer(ModalKind.DETAIL)
    session.open_layer(ModalKind.DETAIL)
    assert stack.depth == 3
    modals.close('cancel')
    assert stack.depth == 0
    assert session.layers == []


def test_second_open_is_rejected():
    _, _, modals = _setup(strict=False)
    first = modals.open(ModalKind.HELP)
    assert modals.open(ModalKind.CONFIRM) is None
    assert modals.session is first
    assert modals.guard.violations == 1


def test_second_open_raises_when_strict():
    _, _, modals = _setup()
    modals.open(ModalKind.HELP)
    with pytest.raises(InvariantViolation):
        modals.open(ModalKind.CONFIRM)


def test_confirm_commit_runs_before_close():
    _, stack, modals = _setup()
    order = []
    modals.open(
        ModalKind.CONFIRM,
        on_commit=lambda s: order.append(('commit', modals.is_open)),
        on_close=lambda reason: order.append(('close', reason)),
    )
    assert stack.dispatch(KeyEvent('y')) is True
    assert order == [('commit', True), ('close', 'commit')]


def test_picker_moves_draft_and_commits_selection():
    _, stack, modals = _setup()
    chosen = []
    modals.open(ModalKind.PICKER, options=['a', 'b', 'c'], on_commit=lambda s: chosen.append(s.draft_index))
    stack.dispatch(KeyEvent('down'))
    stack.dispatch(KeyEvent('j'))
    stack.dispatch(KeyEvent('j'))
    stack.dispatch(KeyEvent('enter'))
    assert chosen == [2]
    assert not modals.is_open


def test_help_swallows_interrupt_but_confirm_lets_it_through():
    _, stack, modals = _setup()
    modals.open(ModalKind.HELP)
    assert stack.dispatch(KeyEvent('ctrl+c')) is True
    assert stack.dispatch(KeyEvent('q')) is True
    assert modals.is_open
    stack.dispatch(KeyEvent('?'))
    assert not modals.is_open

    modals.open(ModalKind.CONFIRM)
    assert stack.dispatch(KeyEvent('ctrl+c')) is False


def test_click_outside_bounds_closes():
    _, stack, modals = _setup()
    reasons = []
    session = modals.open(ModalKind.EXPAND, on_close=reasons.append)
    session.bounds = (10, 5, 20, 6)
    assert stack.dispatch(MouseEvent(12, 7)) is True
    assert modals.is_open
    assert stack.dispatch(MouseEvent(0, 0)) is True
    assert reasons == ['outside']
