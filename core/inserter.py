"""Splices late-arriving fields into a live registry.

Collaborator calls run as asyncio tasks on the app loop. Their results are
handed back through ``loop.call_soon`` so a callback never runs inside the
call that issued it, and only while the owning panel is still alive.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence, Set

from core.fields import FocusableField
from core.registry import FocusRegistry


class Liveness:
    """Per-panel flag that pending callbacks check before touching state."""

    def __init__(self) -> None:
        self.alive = True
        self._tasks: Set[asyncio.Task] = set()

    def teardown(self) -> None:
        self.alive = False
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def __bool__(self) -> bool:
        return self.alive


def insert_at(registry: FocusRegistry, index: int, field: FocusableField, liveness: Optional[Liveness] = None) -> bool:
    if liveness is not None and not liveness.alive:
        return False
    if field.field_id in registry:
        return False
    index = registry.insert(index, field)
    if registry.current_index >= index:
        registry.current_index += 1
    return True


def insert_many(
    registry: FocusRegistry,
    index: int,
    fields: Sequence[FocusableField],
    liveness: Optional[Liveness] = None,
) -> int:
    """Insert ``fields`` in order starting at ``index``; returns how many went in."""
    if liveness is not None and not liveness.alive:
        return 0
    index = min(max(index, 0), len(registry))
    count = 0
    for f in fields:
        if insert_at(registry, index + count, f, liveness):
            count += 1
    return count


class Failed:
    """Result handed to callbacks when the collaborator call raised."""

    def __init__(self, error: BaseException) -> None:
        self.error = error

    @property
    def ok(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f'Failed({self.error!r})'


def schedule(
    awaitable: Awaitable[Any],
    on_result: Callable[[Any], Any],
    liveness: Optional[Liveness] = None,
    *,
    loop: Optional[asyncio.AbstractEventLoop] = None,
    logger=None,
) -> Optional[asyncio.Task]:
    """Run ``awaitable`` on the running loop and deliver its result later.

    Must be called from the loop thread. Raised exceptions become a
    ``Failed`` result; cancellation delivers nothing.
    """
    loop = loop or asyncio.get_running_loop()

    async def _runner() -> Any:
        try:
            return await awaitable
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if logger is not None:
                try:
                    logger.error('core.inserter', exc)
                except Exception:
                    pass
            return Failed(exc)

    def _deliver(result: Any) -> None:
        if liveness is not None and not liveness.alive:
            return
        on_result(result)

    def _done(task: asyncio.Task) -> None:
        if liveness is not None:
            liveness._tasks.discard(task)
        if task.cancelled():
            return
        loop.call_soon(_deliver, task.result())

    task = loop.create_task(_runner())
    if liveness is not None:
        liveness._tasks.add(task)
    task.add_done_callback(_done)
    return task
