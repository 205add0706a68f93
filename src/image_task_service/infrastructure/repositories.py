from dataclasses import replace
from typing import override

from image_task_service.domain.exceptions import PersistenceError
from image_task_service.domain.model import Task, TaskId
from image_task_service.domain.repositories import TaskRepository


class InMemoryTaskRepository(TaskRepository):
    """프로세스 메모리에 Task 스냅샷을 보관하는 저장소.

    호출자가 가진 애그리거트와 저장된 레코드는 save/update를 통해서만 일치합니다.
    """

    def __init__(self, storage: dict[TaskId, Task] | None = None) -> None:
        super().__init__()
        # 여러 UnitOfWork가 같은 storage를 공유하고, seen은 저장소 인스턴스마다 따로 관리합니다.
        self._tasks: dict[TaskId, Task] = storage if storage is not None else {}

    @override
    async def _save(self, task: Task) -> None:
        if task.id in self._tasks:
            raise PersistenceError(
                f"Task with id {task.id} already exists", task_id=str(task.id)
            )
        self._tasks[task.id] = _snapshot(task)

    @override
    async def _find_by_id(self, task_id: TaskId) -> Task | None:
        stored = self._tasks.get(task_id)
        return _snapshot(stored) if stored else None

    @override
    async def _update(self, task: Task) -> None:
        if task.id not in self._tasks:
            raise PersistenceError(
                f"Task with id {task.id} does not exist", task_id=str(task.id)
            )
        self._tasks[task.id] = _snapshot(task)


def _snapshot(task: Task) -> Task:
    # 이미지는 불변 객체이므로 목록만 복사하면 충분합니다. 이벤트는 저장하지 않습니다.
    return replace(task, images=list(task.images), events=[])
