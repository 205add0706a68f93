from dataclasses import dataclass

import pytest
from pytest_mock import MockerFixture

from image_task_service.application.commands import Command, CreateTaskCommand
from image_task_service.domain.events import TaskCompleted, TaskFailed
from image_task_service.infrastructure.message_bus import (
    FunctionHandler,
    InMemoryMessageBus,
)


@dataclass(frozen=True)
class UnregisteredCommand(Command):
    value: int


@pytest.mark.asyncio
async def test_command_handler_result_is_returned():
    bus = InMemoryMessageBus()

    async def handle(command: CreateTaskCommand) -> str:
        return f"handled {command.original_path}"

    bus.register_command(CreateTaskCommand, FunctionHandler(handle))

    result = await bus.handle(CreateTaskCommand(original_path="/tmp/x.jpg"))

    assert result == "handled /tmp/x.jpg"


def test_registering_a_command_twice_fails(mocker: MockerFixture):
    bus = InMemoryMessageBus()
    bus.register_command(CreateTaskCommand, mocker.AsyncMock())

    with pytest.raises(ValueError):
        bus.register_command(CreateTaskCommand, mocker.AsyncMock())


@pytest.mark.asyncio
async def test_unregistered_command_fails():
    bus = InMemoryMessageBus()

    with pytest.raises(ValueError):
        await bus.handle(UnregisteredCommand(value=1))


@pytest.mark.asyncio
async def test_unknown_message_type_fails():
    bus = InMemoryMessageBus()

    with pytest.raises(TypeError):
        await bus.handle("not a message")  # pyright: ignore[reportArgumentType]


@pytest.mark.asyncio
async def test_event_reaches_every_subscriber_even_if_one_fails(mocker: MockerFixture):
    bus = InMemoryMessageBus()
    failing = mocker.AsyncMock()
    failing.handle.side_effect = RuntimeError("subscriber down")
    healthy = mocker.AsyncMock()
    unrelated = mocker.AsyncMock()
    bus.subscribe_to_event(TaskCompleted, failing)
    bus.subscribe_to_event(TaskCompleted, healthy)
    bus.subscribe_to_event(TaskFailed, unrelated)

    event = TaskCompleted(task_id="0123456789abcdef01234567", image_count=2)
    result = await bus.handle(event)

    assert result is None
    failing.handle.assert_awaited_once_with(event)
    healthy.handle.assert_awaited_once_with(event)
    unrelated.handle.assert_not_awaited()
