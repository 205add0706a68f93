from __future__ import annotations

import asyncio
import os
from pathlib import PurePath, PurePosixPath
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

from loguru import logger

from image_task_service.application.commands import CreateTaskCommand
from image_task_service.application.queries import GetTaskQuery, TaskResponseDTO
from image_task_service.domain.events import TaskCompleted, TaskFailed
from image_task_service.domain.exceptions import NotFoundError, ValidationError
from image_task_service.domain.model import Task, TaskId
from image_task_service.infrastructure.imaging import is_remote

if TYPE_CHECKING:
    from image_task_service.domain.services import VariantProducer
    from image_task_service.domain.uow import UnitOfWorkFactory
    from image_task_service.infrastructure.background import BackgroundTaskRunner

SUPPORTED_EXTENSIONS: Final = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"}
)


def source_file_name(original_path: str) -> str:
    """원본 경로(로컬 또는 URL)에서 파일 이름만 꺼냅니다."""
    if is_remote(original_path):
        return PurePosixPath(urlsplit(original_path).path).name
    return PurePath(original_path).name


class CreateTaskCommandHandler:
    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        producer: VariantProducer,
        runner: BackgroundTaskRunner,
    ):
        self.uow_factory: Final = uow_factory
        self.producer: Final = producer
        self.runner: Final = runner

    async def handle(self, command: CreateTaskCommand) -> TaskResponseDTO:
        await self._validate(command.original_path)

        task = Task.create(command.original_path)
        with logger.contextualize(task_id=str(task.id)):
            async with self.uow_factory() as uow:
                await uow.tasks.save(task)
                await uow.commit()
            logger.info(f"Task {task.id} created for {task.original_path}.")

            # 백그라운드 작업이 시작되기 전에 응답을 확정합니다.
            response = TaskResponseDTO.pending(task)
            self.runner.submit(str(task.id), self._process(task))
        return response

    async def _validate(self, original_path: str) -> None:
        if not original_path or not original_path.strip():
            raise ValidationError("originalPath is required", field="originalPath")

        if not is_remote(original_path):
            accessible = await asyncio.to_thread(_is_readable_file, original_path)
            if not accessible:
                raise ValidationError(
                    f"File not found: {original_path}", field="originalPath"
                )

        extension = PurePath(source_file_name(original_path)).suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            raise ValidationError(
                f"Unsupported file format: {extension}", field="originalPath"
            )

    async def _process(self, task: Task) -> None:
        """Task를 처리 중 -> 완료/실패 상태로 진행시키는 백그라운드 작업."""
        with logger.contextualize(task_id=str(task.id)):
            try:
                task.start_processing()
                await self._update(task)
                logger.info("Task processing started.")

                images = await self.producer.produce_variants(
                    task.original_path, source_file_name(task.original_path)
                )
                task.complete(images)
                await self._update(task)
                logger.info(f"Task completed with {len(images)} images.")

            except Exception as e:
                logger.exception("An error occurred while processing the task.")
                try:
                    task.fail(str(e) or type(e).__name__)
                    await self._update(task)
                except Exception as inner_e:
                    logger.critical(
                        f"Failed to update task status to FAILED after initial exception: {inner_e}"
                    )

    async def _update(self, task: Task) -> None:
        async with self.uow_factory() as uow:
            await uow.tasks.update(task)
            await uow.commit()


class GetTaskQueryHandler:
    def __init__(self, uow_factory: UnitOfWorkFactory):
        self.uow_factory: Final = uow_factory

    async def handle(self, query: GetTaskQuery) -> TaskResponseDTO:
        if not query.task_id or not query.task_id.strip():
            raise ValidationError("taskId is required", field="taskId")
        if not TaskId.is_valid(query.task_id):
            raise ValidationError(
                "taskId must be a 24-character hex string", field="taskId"
            )

        with logger.contextualize(task_id=query.task_id):
            logger.debug(f"Handling GetTaskQuery for task {query.task_id}.")
            async with self.uow_factory() as uow:
                task = await uow.tasks.find_by_id(TaskId(query.task_id))
            if not task:
                logger.warning(f"Task {query.task_id} not found in query handler.")
                raise NotFoundError(query.task_id)

            return TaskResponseDTO.from_task(task)


class TaskFinishedHandler:
    """Task가 종료 상태에 도달했음을 기록합니다. 외부 알림은 같은 이벤트를 구독해 붙입니다."""

    async def handle(self, event: TaskCompleted | TaskFailed):
        with logger.contextualize(task_id=event.task_id):
            if isinstance(event, TaskCompleted):
                logger.info(
                    f"Task {event.task_id} officially marked as completed ({event.image_count} images)."
                )
            else:
                logger.warning(f"Task {event.task_id} marked as failed: {event.error}")


def _is_readable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)
