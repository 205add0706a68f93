from __future__ import annotations

from types import TracebackType
from typing import Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from image_task_service.domain.events import Event
from image_task_service.domain.exceptions import PersistenceError
from image_task_service.domain.message_bus import MessageBus
from image_task_service.domain.model import Task, TaskId
from image_task_service.domain.repositories import TaskRepository
from image_task_service.domain.uow import UnitOfWork
from image_task_service.infrastructure.persistence.repositories import (
    SqlTaskRepository,
)
from image_task_service.infrastructure.repositories import InMemoryTaskRepository


async def _publish(bus: MessageBus, repository: TaskRepository) -> None:
    """커밋이 성공한 뒤 저장소가 다룬 애그리거트의 이벤트를 발행합니다."""
    all_events: list[Event] = []
    for aggregate in repository.seen:
        all_events.extend(aggregate.pull_events())
    for event in all_events:
        await bus.handle(event)


class InMemoryUnitOfWork(UnitOfWork):
    """인메모리 저장소를 사용하는 Unit of Work 구현체"""

    def __init__(self, storage: dict[TaskId, Task], bus: MessageBus):
        self._storage = storage
        self.bus = bus

    async def __aenter__(self) -> InMemoryUnitOfWork:
        self.tasks: TaskRepository = InMemoryTaskRepository(self._storage)
        return self

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_val: BaseException | None,
        traceback: TracebackType | None,
    ):
        if exc_type:
            await self.rollback()

    async def commit(self):
        # 인메모리 저장소는 save/update 시점에 바로 반영됩니다.
        await _publish(self.bus, self.tasks)

    async def rollback(self):
        pass


class SqlAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy를 사용한 Unit of Work 구현체"""

    def __init__(self, session_factory: sessionmaker[Session], bus: MessageBus):
        self.session_factory = session_factory
        self.bus = bus

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        self.session: Session = self.session_factory()
        self.tasks: TaskRepository = SqlTaskRepository(self.session)
        return self

    async def __aexit__(
        self,
        exc_type: Type[BaseException] | None,
        exc_val: BaseException | None,
        traceback: TracebackType | None,
    ):
        if exc_type:
            await self.rollback()
        self.session.close()

    async def commit(self):
        """DB 변경사항을 커밋하고, 수집된 도메인 이벤트를 발행합니다."""
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise PersistenceError(f"Failed to commit: {e}") from e

        # DB 커밋이 성공한 후에만 이벤트를 발행합니다.
        await _publish(self.bus, self.tasks)

    async def rollback(self):
        self.session.rollback()
