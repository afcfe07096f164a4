"""System clipboard access for the history panel."""

from __future__ import annotations

import platform
import shutil
import subprocess
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple


@dataclass
class ClipboardOutcome:
    """Result metadata for a clipboard attempt."""

    success: bool
    method: str
    error: Optional[str] = None


class ClipboardHelper:
    """OSC-52 first (through the terminal), then the platform copy commands.

    ``primary`` is the OSC-52 writer, normally ``App.copy_to_clipboard``.
    """

    def __init__(
        self,
        primary: Optional[Callable[[str], None]] = None,
        *,
        runner: Optional[Callable[..., object]] = None,
        system: Optional[str] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
    ) -> None:
        self.primary = primary
        self._run = runner or subprocess.run
        self._system = system
        self._which = which
        self.last_outcome: Optional[ClipboardOutcome] = None

    def copy(self, text: str) -> ClipboardOutcome:
        outcome = self._copy(text if text is not None else "")
        self.last_outcome = outcome
        return outcome

    def _copy(self, text: str) -> ClipboardOutcome:
        last_error: Optional[str] = None
        if self.primary is not None:
            try:
                self.primary(text)
                return ClipboardOutcome(True, "osc52")
            except Exception as exc:
                last_error = str(exc)

        for command in self._iter_fallback_commands():
            try:
                self._run(
                    list(command),
                    check=True,
                    input=text.encode("utf-8"),
                    capture_output=True,
                    timeout=5,
                )
                return ClipboardOutcome(True, " ".join(command))
            except (OSError, subprocess.SubprocessError) as fallback_exc:
                last_error = f"{' '.join(command)}: {fallback_exc}"

        return ClipboardOutcome(False, "none", error=last_error or "no clipboard command available")

    def _iter_fallback_commands(self) -> Iterable[Tuple[str, ...]]:
        system = (self._system or platform.system()).lower()
        if system == "darwin":
            if self._which("pbcopy"):
                yield ("pbcopy",)
            return
        if system == "windows":
            yield ("powershell", "-NoProfile", "-Command", "Set-Clipboard -Value ([Console]::In.ReadToEnd())")
            return
        # Assume Linux / BSD
        if self._which("wl-copy"):
            yield ("wl-copy",)
        if self._which("xclip"):
            yield ("xclip", "-selection", "clipboard")
