from __future__ import annotations

from typing import Callable, Protocol

from image_task_service.domain.repositories import TaskRepository


class UnitOfWork(Protocol):
    """Unit of Work 패턴의 추상 인터페이스"""

    tasks: TaskRepository

    async def __aenter__(self) -> UnitOfWork:
        ...

    async def __aexit__(self, exc_type, exc_val, traceback):
        ...

    async def commit(self):
        ...

    async def rollback(self):
        ...


# 동시에 실행되는 작업끼리 세션을 공유하지 않도록 단계마다 새 UnitOfWork를 엽니다.
UnitOfWorkFactory = Callable[[], UnitOfWork]
