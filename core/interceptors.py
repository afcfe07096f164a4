"""Layered input interceptors, tried last-pushed first."""

from __future__ import annotations

from typing import Any, Callable, List

Interceptor = Callable[[Any], bool]


class InterceptorStack:
    """Ordered stack of ``event -> consumed`` handlers.

    push appends to the top; dispatch offers the event top-down and stops at the
    first handler that returns True. remove is by identity and idempotent, since
    teardown order relative to event delivery is not guaranteed.
    """

    def __init__(self) -> None:
        self._handlers: List[Interceptor] = []

    def push(self, handler: Interceptor) -> Interceptor:
        self._handlers.append(handler)
        return handler

    def remove(self, handler: Interceptor) -> bool:
        for i in range(len(self._handlers) - 1, -1, -1):
            if self._handlers[i] is handler:
                del self._handlers[i]
                return True
        return False

    def dispatch(self, event: Any) -> bool:
        # Snapshot: handlers may push or remove while the event is delivered
        for handler in reversed(list(self._handlers)):
            if not self._live(handler):
                continue
            if handler(event):
                return True
        return False

    @property
    def depth(self) -> int:
        return len(self._handlers)

    def truncate(self, depth: int) -> List[Interceptor]:
        """Pop back down to ``depth`` and return the removed handlers, top first."""
        depth = max(0, depth)
        removed = self._handlers[depth:]
        del self._handlers[depth:]
        removed.reverse()
        return removed

    def top(self):
        return self._handlers[-1] if self._handlers else None

    def _live(self, handler: Interceptor) -> bool:
        return any(h is handler for h in self._handlers)

    def __contains__(self, handler: object) -> bool:
        return self._live(handler)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._handlers)
