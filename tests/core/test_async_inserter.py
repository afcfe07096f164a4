from __future__ import annotations

import asyncio
import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from core.errors import InvariantGuard
from core.fields import ListField, Option, ToggleField
from core.inserter import Failed, Liveness, insert_at, insert_many, schedule
from core.registry import FocusRegistry


def _registry(n):
    return FocusRegistry([ToggleField(f'f{i}', f'F{i}') for i in range(n)], guard=InvariantGuard(strict=True))


def test_splice_before_focus_shifts_index_to_same_field():
    reg = _registry(8)
    reg.focus_at(6)
    focused = reg.current
    devices = ListField('devices', 'Devices', [Option(f'd{i}') for i in range(5)])

    assert insert_at(reg, 4, devices, Liveness()) is True
    assert reg.current_index == 7
    assert reg.current is focused
    assert reg.fields[4] is devices
    assert reg.check_invariant()


def test_splice_after_focus_leaves_index_alone():
    reg = _registry(4)
    reg.focus_at(1)
    insert_at(reg, 3, ToggleField('late', 'Late'))
    assert reg.current_index == 1


def test_splice_at_focus_index_shifts():
    reg = _registry(4)
    reg.focus_at(2)
    insert_at(reg, 2, ToggleField('late', 'Late'))
    assert reg.current_index == 3
    assert reg.current.field_id == 'f2'


def test_dead_panel_or_duplicate_id_is_ignored():
    reg = _registry(3)
    dead = Liveness()
    dead.teardown()
    assert insert_at(reg, 0, ToggleField('late', 'Late'), dead) is False
    assert insert_at(reg, 0, ToggleField('f1', 'again')) is False
    assert len(reg) == 3


def test_insert_many_keeps_order():
    reg = _registry(3)
    reg.focus_at(2)
    count = insert_many(reg, 1, [ToggleField('x', 'X'), ToggleField('y', 'Y')])
    assert count == 2
    assert reg.ids() == ['f0', 'x', 'y', 'f1', 'f2']
    assert reg.current.field_id == 'f2'


def test_schedule_delivers_on_a_later_turn():
    delivered = []

    async def load():
        return ['mic']

    async def main():
        task = schedule(load(), delivered.append, Liveness())
        await task
        # Result is queued with call_soon, not delivered inside the task callback
        assert delivered == []
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(main())
    assert delivered == [['mic']]


def test_schedule_converts_errors_to_failed():
    delivered = []

    async def load():
        raise RuntimeError('boom')

    async def main():
        await schedule(load(), delivered.append)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(main())
    assert len(delivered) == 1
    assert isinstance(delivered[0], Failed)
    assert not delivered[0].ok
    assert str(delivered[0].error) == 'boom'


def test_schedule_drops_result_after_teardown():
    delivered = []
    live = Liveness()

    async def load():
        return 'late'

    async def main():
        task = schedule(load(), delivered.append, live)
        await task
        live.teardown()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

    asyncio.run(main())
    assert delivered == []


def test_teardown_cancels_pending_tasks():
    delivered = []
    live = Liveness()

    async def slow():
        await asyncio.sleep(10)
        return 'never'

    async def main():
        task = schedule(slow(), delivered.append, live)
        await asyncio.sleep(0)
        live.teardown()
        await asyncio.sleep(0)
        return task

    task = asyncio.run(main())
    assert task.cancelled()
    assert delivered == []
