"""Unit tests for schedulers."""

import asyncio

import pytest

from view_tree.scheduler import EventLoopScheduler, TaskQueue


def test_task_queue_runs_in_order():
    """Test tasks run first in, first out."""
    queue = TaskQueue()
    ran = []
    queue.call_soon(ran.append, 1)
    queue.call_soon(ran.append, 2)

    assert len(queue) == 2
    assert queue.run_pending() == 2
    assert ran == [1, 2]
    assert len(queue) == 0


def test_task_queue_run_once_leaves_new_tasks():
    """Test tasks queued while running wait for the next tick."""
    queue = TaskQueue()
    ran = []

    def first():
        ran.append("first")
        queue.call_soon(ran.append, "nested")

    queue.call_soon(first)
    queue.call_soon(ran.append, "second")

    assert queue.run_once() == 2
    assert ran == ["first", "second"]
    assert len(queue) == 1


def test_task_queue_run_pending_drains_nested_tasks():
    """Test draining keeps going until nothing is queued."""
    queue = TaskQueue()
    ran = []
    queue.call_soon(lambda: queue.call_soon(ran.append, "nested"))

    assert queue.run_pending() == 2
    assert ran == ["nested"]


def test_task_queue_empty():
    """Test draining an empty queue does nothing."""
    assert TaskQueue().run_pending() == 0


@pytest.mark.asyncio
async def test_event_loop_scheduler_defers_to_next_iteration():
    """Test callbacks run on the running loop after the current task yields."""
    scheduler = EventLoopScheduler()
    ran = []

    scheduler.call_soon(ran.append, "later")
    assert ran == []

    await asyncio.sleep(0)
    assert ran == ["later"]


def test_event_loop_scheduler_uses_given_loop():
    """Test an explicit loop is used outside of a running loop."""
    loop = asyncio.new_event_loop()
    try:
        ran = []
        EventLoopScheduler(loop).call_soon(ran.append, "x")
        loop.call_soon(loop.stop)
        loop.run_forever()
        assert ran == ["x"]
    finally:
        loop.close()


def test_event_loop_scheduler_without_loop():
    """Test scheduling with no loop at all fails loudly."""
    with pytest.raises(RuntimeError):
        EventLoopScheduler().call_soon(print)
