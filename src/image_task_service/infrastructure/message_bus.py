from __future__ import annotations

from collections import defaultdict
from typing import Any, Awaitable, Callable, override

from loguru import logger

from image_task_service.application.commands import Command
from image_task_service.domain.events import Event
from image_task_service.domain.message_bus import Handler, Message, MessageBus


class FunctionHandler(Handler):
    """함수를 핸들러 프로토콜에 맞게 감싸는 어댑터"""

    def __init__(self, handler_func: Callable[[Any], Awaitable[Any]]):
        self._handler_func = handler_func

    @override
    async def handle(self, message: Any) -> Any:
        return await self._handler_func(message)


class InMemoryMessageBus(MessageBus):
    """인메모리 메시지 버스 구현체.

    커맨드는 등록된 핸들러 하나가 처리하고 그 결과를 반환합니다.
    이벤트는 구독한 모든 핸들러에 전달되며, 한 구독자의 실패는 기록만 하고 다른 구독자에게 영향을 주지 않습니다.
    """

    def __init__(self):
        self._command_handlers: dict[type[Command], Handler] = {}
        self._event_handlers: defaultdict[type[Event], list[Handler]] = defaultdict(
            list
        )

    @override
    def register_command(self, command: type[Command], handler: Handler) -> None:
        if command in self._command_handlers:
            raise ValueError(f"Command {command.__name__} already has a handler.")
        self._command_handlers[command] = handler

    @override
    def subscribe_to_event(self, event: type[Event], handler: Handler) -> None:
        self._event_handlers[event].append(handler)

    @override
    async def handle(self, message: Message) -> Any:
        if isinstance(message, Event):
            await self._handle_event(message)
            return None
        elif isinstance(message, Command):
            handler = self._command_handlers.get(type(message))
            if handler is None:
                raise ValueError(
                    f"No handler found for command {type(message).__name__}"
                )
            return await handler.handle(message)
        else:
            raise TypeError(
                f"Message must be a Command or Event, not {type(message).__name__}"
            )

    async def _handle_event(self, event: Event) -> None:
        for handler in self._event_handlers[type(event)]:
            try:
                await handler.handle(event)
            except Exception:
                logger.exception(
                    f"Event handler {type(handler).__name__} failed for {type(event).__name__}."
                )
