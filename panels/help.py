"""Help overlay content."""

from __future__ import annotations

from typing import List, Sequence, Tuple

HELP_SECTIONS: Sequence[Tuple[str, Sequence[Tuple[str, str]]]] = (
    ('Global', (
        ('←/→ h/l', 'Switch between History / Config tabs'),
        ('Enter ↓ j', 'Move from the tab bar into the panel'),
        ('Esc', 'Back to the tab bar'),
        ('t', 'Toggle dark/light theme'),
        ('?', 'Toggle this help overlay'),
        ('Ctrl+S', 'Save config changes'),
        ('q Ctrl+C', 'Quit'),
    )),
    ('History Tab', (
        ('↑ / k', 'Move selection up'),
        ('↓ / j', 'Move selection down'),
        ('Enter', 'Expand full transcription text'),
        ('c', 'Copy selected entry to clipboard'),
        ('e', 'Export selected entry to file'),
        ('d', 'Delete selected entry'),
        ('D (Shift+d)', 'Clear all history'),
    )),
    ('Config Tab', (
        ('Tab / Shift+Tab', 'Move between fields'),
        ('↑ / ↓', 'Move between fields, or within an inline list'),
        ('Enter', 'Open a selector, or record a key combo'),
        ('←/→ h/l', 'Step a value'),
        ('Space', 'Toggle on/off'),
        ('d', 'Download the selected model'),
    )),
    ('Popups', (
        ('y / Enter', 'Confirm action'),
        ('n / Esc', 'Cancel / close popup'),
        ('v', 'Show entry details in a delete prompt'),
    )),
)


def help_lines(sections: Sequence[Tuple[str, Sequence[Tuple[str, str]]]] = HELP_SECTIONS) -> List[str]:
    width = max((len(key) for _, keys in sections for key, _ in keys), default=0)
    lines: List[str] = []
    for title, keys in sections:
        if lines:
            lines.append('')
        lines.append(title)
        for key, desc in keys:
            lines.append(f'  {key.ljust(width)}  {desc}')
    return lines
