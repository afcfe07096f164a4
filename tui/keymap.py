"""Translate Textual input events into routing-core events."""

from __future__ import annotations

from typing import Any, Optional

from core.events import KeyEvent, MouseEvent

# Textual names that the core knows by another name
KEY_ALIASES = {
    'backtab': 'shift+tab',
    'return': 'enter',
    'ctrl+i': 'tab',
    'ctrl+m': 'enter',
    'ctrl+left_square_bracket': 'escape',
}


def translate_key(key: str, character: Optional[str] = None) -> KeyEvent:
    """Build a core ``KeyEvent`` from a Textual key name and character.

    Printable characters without ctrl/alt become the key itself (``?``, ``D``),
    so bindings read the same as what was typed.
    """
    name = KEY_ALIASES.get(key, key)
    parts = name.split('+')
    chorded = any(p in ('ctrl', 'alt', 'meta', 'super') for p in parts[:-1])
    if (
        character is not None
        and len(character) == 1
        and character.isprintable()
        and character != ' '
        and not chorded
    ):
        return KeyEvent(character, character)
    return KeyEvent(name, character)


def from_textual_key(event: Any) -> KeyEvent:
    return translate_key(getattr(event, 'key', '') or '', getattr(event, 'character', None))


def from_textual_click(event: Any) -> MouseEvent:
    x = getattr(event, 'screen_x', None)
    y = getattr(event, 'screen_y', None)
    return MouseEvent(
        x=int(x if x is not None else getattr(event, 'x', 0)),
        y=int(y if y is not None else getattr(event, 'y', 0)),
        button=int(getattr(event, 'button', 1) or 1),
    )
