"""Canonical chord strings for the key-combo recorder field."""

from __future__ import annotations

import platform
from typing import Dict, Optional

from core.events import KeyEvent

MAX_MODIFIERS = 2

SHIFTED_SYMBOLS: Dict[str, str] = {
    ')': '0', '!': '1', '@': '2', '#': '3', '$': '4',
    '%': '5', '^': '6', '&': '7', '*': '8', '(': '9',
    '_': '-', '+': '=', '{': '[', '}': ']', '|': '\\',
    ':': ';', '"': "'", '<': ',', '>': '.', '?': '/', '~': '`',
}

KEY_NAMES: Dict[str, str] = {
    'space': 'Space',
    'enter': 'Enter',
    'return': 'Enter',
    'escape': 'Escape',
    'tab': 'Tab',
    'backspace': 'Backspace',
    'delete': 'Delete',
    'up': 'Up',
    'down': 'Down',
    'left': 'Left',
    'right': 'Right',
    'home': 'Home',
    'end': 'End',
    'pageup': 'PageUp',
    'pagedown': 'PageDown',
    **{f'f{n}': f'F{n}' for n in range(1, 13)},
}

BARE_MODIFIERS = {'control', 'ctrl', 'shift', 'alt', 'meta', 'super'}


def default_meta_label() -> str:
    return 'Cmd' if platform.system() == 'Darwin' else 'Win'


def format_chord(event: KeyEvent, *, meta_label: Optional[str] = None) -> str:
    """Return the canonical chord for ``event`` (``Ctrl+Shift+Space``), or '' if unrecognized.

    At most two modifiers plus one main key are accepted; presses of a bare
    modifier produce ''. Shifted symbols and upper-case letters imply Shift.
    """
    raw = event.base
    if not raw or raw.lower() in BARE_MODIFIERS:
        return ''

    implied_shift = False
    if raw in SHIFTED_SYMBOLS:
        raw = SHIFTED_SYMBOLS[raw]
        implied_shift = True
    elif len(raw) == 1 and raw.isalpha() and raw.isupper():
        implied_shift = True

    modifiers = []
    if event.ctrl:
        modifiers.append('Ctrl')
    if event.meta:
        modifiers.append(meta_label or default_meta_label())
    if event.shift or implied_shift:
        modifiers.append('Shift')
    if event.alt:
        modifiers.append('Alt')
    if len(modifiers) > MAX_MODIFIERS:
        return ''

    if len(raw) == 1:
        name = raw.upper()
    else:
        name = KEY_NAMES.get(raw.lower()) or (raw[:1].upper() + raw[1:])
    return '+'.join(modifiers + [name])
