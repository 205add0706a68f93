from abc import ABC, abstractmethod
from typing import Set

from image_task_service.domain.model import Task, TaskId


class TaskRepository(ABC):
    """Task 애그리거트를 저장하고 조회하는 저장소 포트.

    save/update는 실패 시 PersistenceError를 던지고,
    find_by_id는 대상이 없으면 None을 반환합니다.
    """

    seen: Set[Task]

    def __init__(self):
        self.seen = set()

    async def save(self, task: Task) -> None:
        await self._save(task)
        self.seen.add(task)

    async def find_by_id(self, task_id: TaskId) -> Task | None:
        task = await self._find_by_id(task_id)
        if task:
            self.seen.add(task)
        return task

    async def update(self, task: Task) -> None:
        await self._update(task)
        self.seen.add(task)

    @abstractmethod
    async def _save(self, task: Task) -> None:
        raise NotImplementedError

    @abstractmethod
    async def _find_by_id(self, task_id: TaskId) -> Task | None:
        raise NotImplementedError

    @abstractmethod
    async def _update(self, task: Task) -> None:
        raise NotImplementedError
