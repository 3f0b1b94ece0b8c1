"""Unit tests for TaskRegistry."""

import asyncio
from contextlib import suppress
from unittest.mock import patch

import pytest

from accessh.tasks import TaskRegistry


@pytest.mark.asyncio
async def test_spawn_tracks_and_forgets_finished_tasks():
    """Finished tasks drop out of the registry via their done callback."""
    registry = TaskRegistry()

    async def quick():
        return "done"

    task = registry.spawn(quick(), name="quick")
    assert registry.task_count() == 1

    assert await task == "done"
    await asyncio.sleep(0)
    assert registry.task_count() == 0


@pytest.mark.asyncio
async def test_cancel_all_cancels_without_waiting():
    registry = TaskRegistry()
    blocker = asyncio.Event()
    task = registry.spawn(blocker.wait(), name="blocked")

    registry.cancel_all()

    with suppress(asyncio.CancelledError):
        await task
    assert task.cancelled()


@pytest.mark.asyncio
async def test_wait_returns_pending_after_timeout():
    """wait() leaves tasks running and reports the ones that did not finish."""
    registry = TaskRegistry()
    blocker = asyncio.Event()
    slow = registry.spawn(blocker.wait(), name="slow")
    fast = registry.spawn(asyncio.sleep(0), name="fast")

    pending = await registry.wait(timeout=0.05)

    assert pending == {slow}
    assert fast.done()
    assert not slow.done()

    blocker.set()
    await slow


@pytest.mark.asyncio
async def test_wait_on_empty_registry():
    assert await TaskRegistry().wait(timeout=1.0) == set()


@pytest.mark.asyncio
async def test_shutdown_cancels_pending_tasks():
    registry = TaskRegistry()
    blocker = asyncio.Event()
    tasks = [registry.spawn(blocker.wait(), name=f"task-{i}") for i in range(3)]

    await registry.shutdown(timeout=0.1)

    assert all(task.cancelled() for task in tasks)


@pytest.mark.asyncio
async def test_shutdown_logs_tasks_that_ignore_cancellation():
    registry = TaskRegistry(owner="ssh")
    release = asyncio.Event()

    async def stubborn():
        while not release.is_set():
            try:
                await release.wait()
            except asyncio.CancelledError:
                continue

    task = registry.spawn(stubborn(), name="stubborn")
    await asyncio.sleep(0)

    with patch("accessh.tasks.logger") as mock_logger:
        await registry.shutdown(timeout=0.05)

    assert any("shutdown timeout" in str(call.args[0]) for call in mock_logger.warning.call_args_list)

    release.set()
    await task


@pytest.mark.asyncio
async def test_failed_task_is_logged_with_traceback():
    registry = TaskRegistry()

    async def failing():
        raise ValueError("session crashed")

    with patch("accessh.tasks.logger") as mock_logger:
        task = registry.spawn(failing(), name="failing")
        with suppress(ValueError):
            await task
        await asyncio.sleep(0)

    mock_logger.error.assert_called_once()
    assert isinstance(mock_logger.error.call_args.kwargs["exc_info"], ValueError)
