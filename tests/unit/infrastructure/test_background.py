import asyncio

import pytest
from loguru import logger

from image_task_service.infrastructure.background import BackgroundTaskRunner


@pytest.fixture
def captured_logs():
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.mark.asyncio
async def test_submit_returns_immediately_and_join_waits():
    runner = BackgroundTaskRunner()
    release = asyncio.Event()
    done: list[str] = []

    async def work():
        await release.wait()
        done.append("finished")

    runner.submit("task-1", work())

    assert runner.is_running("task-1")
    assert runner.in_flight == 1
    assert done == []

    release.set()
    await runner.join()

    assert done == ["finished"]
    assert runner.in_flight == 0


@pytest.mark.asyncio
async def test_duplicate_key_is_rejected_while_running():
    runner = BackgroundTaskRunner()
    release = asyncio.Event()

    runner.submit("task-1", release.wait())
    second = release.wait()

    with pytest.raises(RuntimeError):
        runner.submit("task-1", second)

    release.set()
    await runner.join()


@pytest.mark.asyncio
async def test_escaped_error_is_logged_not_raised(captured_logs):
    runner = BackgroundTaskRunner()

    async def explode():
        raise RuntimeError("kaboom")

    runner.submit("task-1", explode())
    await runner.join()

    assert runner.in_flight == 0
    assert any("unhandled error" in message for message in captured_logs)


@pytest.mark.asyncio
async def test_shutdown_waits_and_refuses_new_work():
    runner = BackgroundTaskRunner()
    done: list[int] = []

    async def work(value: int):
        await asyncio.sleep(0)
        done.append(value)

    runner.submit("a", work(1))
    runner.submit("b", work(2))
    await runner.shutdown()

    assert sorted(done) == [1, 2]
    with pytest.raises(RuntimeError):
        runner.submit("c", work(3))
