from __future__ import annotations

import os
import subprocess
import sys
from types import SimpleNamespace

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tui.keymap import from_textual_click, from_textual_key, translate_key
from tui.utils.clipboard import ClipboardHelper


def test_printable_characters_become_their_own_key():
    assert translate_key('question_mark', '?').key == '?'
    assert translate_key('D', 'D').key == 'D'
    assert translate_key('shift+d', 'D').key == 'D'


def test_named_and_chorded_keys_keep_their_names():
    assert translate_key('enter', '\r').key == 'enter'
    assert translate_key('space', ' ').key == 'space'
    assert translate_key('backtab').key == 'shift+tab'
    assert translate_key('ctrl+s', '\x13').key == 'ctrl+s'
    ev = translate_key('ctrl+shift+a', 'A')
    assert ev.key == 'ctrl+shift+a'
    assert ev.ctrl and ev.shift


def test_textual_event_adapters():
    key = from_textual_key(SimpleNamespace(key='escape', character='\x1b'))
    assert key.key == 'escape'
    click = from_textual_click(SimpleNamespace(screen_x=7, screen_y=3, x=1, y=1, button=1))
    assert (click.x, click.y) == (7, 3)


def test_clipboard_prefers_terminal_writer():
    written = []
    helper = ClipboardHelper(primary=written.append, runner=lambda *a, **k: None)
    outcome = helper.copy('hello')
    assert outcome.success
    assert outcome.method == 'osc52'
    assert written == ['hello']


def test_clipboard_falls_back_to_platform_command():
    calls = []

    def broken(text):
        raise RuntimeError('no tty')

    def runner(cmd, **kwargs):
        calls.append((cmd, kwargs['input']))
        return subprocess.CompletedProcess(cmd, 0)

    helper = ClipboardHelper(primary=broken, runner=runner, system='Linux', which=lambda name: name == 'xclip')
    outcome = helper.copy('hi')
    assert outcome.success
    assert calls == [(['xclip', '-selection', 'clipboard'], b'hi')]
    assert helper.last_outcome is outcome


def test_clipboard_reports_failure_when_nothing_works():
    def runner(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd)

    helper = ClipboardHelper(runner=runner, system='Darwin', which=lambda name: '/usr/bin/pbcopy')
    outcome = helper.copy('x')
    assert not outcome.success
    assert 'pbcopy' in outcome.error
