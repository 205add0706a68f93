from typing import Any, override

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from image_task_service.domain.exceptions import PersistenceError
from image_task_service.domain.model import (
    Price,
    ProcessedImage,
    Task,
    TaskId,
)
from image_task_service.domain.repositories import TaskRepository
from image_task_service.infrastructure.logging_utils import log_function_call
from image_task_service.infrastructure.persistence.orm import (
    task_images_table,
    tasks_table,
)


class SqlTaskRepository(TaskRepository):
    """TaskRepository의 SQLAlchemy 구현체.

    커밋은 UnitOfWork가 담당하고, 여기서는 현재 세션의 트랜잭션 안에서만 씁니다.
    """

    def __init__(self, session: Session):
        super().__init__()
        self.session = session

    @override
    @log_function_call
    async def _save(self, task: Task) -> None:
        """새 Task와 이미지 레코드를 삽입합니다."""
        try:
            self.session.execute(insert(tasks_table).values(**self._task_row(task)))
            self._insert_images(task)
        except IntegrityError as e:
            raise PersistenceError(
                f"Task with id {task.id} already exists", task_id=str(task.id)
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to save task {task.id}: {e}", task_id=str(task.id)
            ) from e

    @override
    @log_function_call
    async def _find_by_id(self, task_id: TaskId) -> Task | None:
        """ID로 Task를 조회하고 도메인 모델로 복원합니다."""
        try:
            row = (
                self.session.execute(
                    select(tasks_table).where(tasks_table.c.task_id == str(task_id))
                )
                .mappings()
                .first()
            )
            if row is None:
                return None
            image_rows = (
                self.session.execute(
                    select(task_images_table)
                    .where(task_images_table.c.task_id == str(task_id))
                    .order_by(task_images_table.c.position)
                )
                .mappings()
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to load task {task_id}: {e}", task_id=str(task_id)
            ) from e
        return self._reconstitute(row, image_rows)

    @override
    @log_function_call
    async def _update(self, task: Task) -> None:
        """변경 가능한 필드를 덮어쓰고 이미지 레코드를 통째로 교체합니다."""
        try:
            result = self.session.execute(
                update(tasks_table)
                .where(tasks_table.c.task_id == str(task.id))
                .values(
                    status=task.status,
                    updated_at=task.updated_at,
                    error=task.error,
                )
            )
            if result.rowcount == 0:
                raise PersistenceError(
                    f"Task with id {task.id} does not exist", task_id=str(task.id)
                )
            self.session.execute(
                delete(task_images_table).where(
                    task_images_table.c.task_id == str(task.id)
                )
            )
            self._insert_images(task)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to update task {task.id}: {e}", task_id=str(task.id)
            ) from e

    def _insert_images(self, task: Task) -> None:
        if not task.images:
            return
        self.session.execute(
            insert(task_images_table),
            [
                {
                    "task_id": str(task.id),
                    "position": position,
                    "resolution": image.resolution,
                    "path": image.path,
                    "md5": image.content_hash,
                    "created_at": image.produced_at,
                }
                for position, image in enumerate(task.images)
            ],
        )

    @staticmethod
    def _task_row(task: Task) -> dict[str, Any]:
        # 도메인 모델 -> 원시 타입
        return {
            "task_id": str(task.id),
            "status": task.status,
            "price": task.price.value,
            "original_path": task.original_path,
            "created_at": task.created_at,
            "updated_at": task.updated_at,
            "error": task.error,
        }

    @staticmethod
    def _reconstitute(row, image_rows) -> Task:
        # 원시 타입 -> 도메인 모델
        images = [
            ProcessedImage(
                resolution=image_row["resolution"],
                path=image_row["path"],
                content_hash=image_row["md5"],
                produced_at=image_row["created_at"],
            )
            for image_row in image_rows
        ]
        return Task(
            id=TaskId(row["task_id"]),
            price=Price(row["price"]),
            original_path=row["original_path"],
            status=row["status"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            error=row["error"],
            images=images,
        )
