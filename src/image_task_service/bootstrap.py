from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from image_task_service.application import handlers
from image_task_service.application.commands import CreateTaskCommand
from image_task_service.application.handlers import GetTaskQueryHandler
from image_task_service.domain.events import TaskCompleted, TaskFailed
from image_task_service.domain.model import Task, TaskId
from image_task_service.infrastructure.background import BackgroundTaskRunner
from image_task_service.infrastructure.imaging import PillowVariantProducer
from image_task_service.infrastructure.message_bus import InMemoryMessageBus
from image_task_service.infrastructure.persistence.database import (
    create_engine_from_settings,
    create_session_factory,
    create_tables,
)
from image_task_service.infrastructure.uow import (
    InMemoryUnitOfWork,
    SqlAlchemyUnitOfWork,
)

if TYPE_CHECKING:
    from image_task_service.config import Settings
    from image_task_service.domain.message_bus import MessageBus
    from image_task_service.domain.services import VariantProducer
    from image_task_service.domain.uow import UnitOfWorkFactory


class Application:
    """애플리케이션의 핵심 컴포넌트들을 관리하는 클래스"""

    def __init__(
        self,
        bus: MessageBus,
        uow_factory: UnitOfWorkFactory,
        producer: VariantProducer,
        runner: BackgroundTaskRunner,
        query_handler: GetTaskQueryHandler,
    ):
        self.bus = bus
        self.uow_factory = uow_factory
        self.producer = producer
        self.runner = runner
        self.query_handler = query_handler

    async def close(self) -> None:
        """진행 중인 백그라운드 작업이 끝날 때까지 기다린 뒤 종료합니다."""
        await self.runner.shutdown()


def bootstrap(
    settings: Settings,
    producer: VariantProducer | None = None,
    in_memory: bool = False,
) -> Application:
    """애플리케이션을 초기화하고 모든 컴포넌트를 설정합니다.

    Args:
        settings: 한 번 로드된 애플리케이션 설정
        producer: 변환 이미지 생성기. 생략하면 Pillow 구현체를 사용합니다.
        in_memory: True면 DB 대신 인메모리 저장소를 사용합니다.

    Returns:
        초기화된 Application 객체
    """
    logger.info("Application bootstrap started.")

    # 1. 메시지 버스 및 UnitOfWork 팩토리 생성
    bus = InMemoryMessageBus()
    uow_factory: UnitOfWorkFactory
    if in_memory:
        storage: dict[TaskId, Task] = {}
        uow_factory = lambda: InMemoryUnitOfWork(storage, bus)  # noqa: E731
        logger.debug("Using in-memory task storage.")
    else:
        engine = create_engine_from_settings(settings)
        create_tables(engine)
        session_factory = create_session_factory(engine)
        uow_factory = lambda: SqlAlchemyUnitOfWork(session_factory, bus)  # noqa: E731
        logger.debug(f"Using database at {engine.url!r}.")

    # 2. 변환 이미지 생성기 및 백그라운드 실행기
    if producer is None:
        producer = PillowVariantProducer(
            output_dir=settings.output_dir, fetch_timeout=settings.fetch_timeout
        )
    runner = BackgroundTaskRunner()

    # 3. 커맨드 핸들러 등록
    bus.register_command(
        CreateTaskCommand,
        handlers.CreateTaskCommandHandler(
            uow_factory=uow_factory, producer=producer, runner=runner
        ),
    )

    # 4. 이벤트 핸들러 등록
    finished_handler = handlers.TaskFinishedHandler()
    bus.subscribe_to_event(TaskCompleted, finished_handler)
    bus.subscribe_to_event(TaskFailed, finished_handler)

    # 5. 쿼리 핸들러 생성
    query_handler = GetTaskQueryHandler(uow_factory=uow_factory)

    logger.info("Application bootstrap finished.")

    return Application(
        bus=bus,
        uow_factory=uow_factory,
        producer=producer,
        runner=runner,
        query_handler=query_handler,
    )
