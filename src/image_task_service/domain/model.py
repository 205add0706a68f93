import random
import re
import secrets
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import override

from image_task_service.domain.events import (
    Event,
    TaskCompleted,
    TaskCreated,
    TaskFailed,
    TaskProcessingStarted,
)
from image_task_service.domain.exceptions import StateError, ValidationError

TASK_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
MD5_PATTERN = re.compile(r"^[a-fA-F0-9]{32}$")

MIN_PRICE = 5.0
MAX_PRICE = 50.0


def utcnow() -> datetime:
    return datetime.now(UTC)


# --- Value Objects ---


@dataclass(frozen=True)
class TaskId:
    """24자리 16진수 문자열로 표현되는 Task 식별자 Value Object"""

    value: str

    def __post_init__(self):
        if not self.value or not self.value.strip():
            raise ValidationError("TaskId cannot be empty", field="taskId")
        if not TASK_ID_PATTERN.match(self.value):
            raise ValidationError(
                "TaskId must be a 24-character hex string", field="taskId"
            )

    @staticmethod
    def generate() -> "TaskId":
        """초 단위 타임스탬프(8자리)와 임의의 16자리 16진수로 새 식별자를 만듭니다."""
        timestamp = format(int(time.time()), "08x")
        return TaskId(timestamp + secrets.token_hex(8))

    @staticmethod
    def is_valid(value: str) -> bool:
        return bool(value) and TASK_ID_PATTERN.match(value) is not None

    @override
    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Price:
    """5 이상 50 이하, 소수점 둘째 자리로 반올림되는 가격 Value Object"""

    value: float

    def __post_init__(self):
        if not MIN_PRICE <= self.value <= MAX_PRICE:
            raise ValidationError(
                f"Price must be between {MIN_PRICE:g} and {MAX_PRICE:g}",
                field="price",
            )
        object.__setattr__(self, "value", round(self.value, 2))

    @staticmethod
    def random() -> "Price":
        return Price(random.uniform(MIN_PRICE, MAX_PRICE))

    @override
    def __str__(self) -> str:
        return f"{self.value:.2f}"


class Resolution(Enum):
    """생성할 변환 이미지의 가로 폭. 선언 순서가 응답에 노출되는 정렬 순서입니다."""

    R1024 = "1024"
    R800 = "800"

    @property
    def width(self) -> int:
        return int(self.value)

    @property
    def order(self) -> int:
        return list(Resolution).index(self)


class TaskStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_pending(self) -> bool:
        return self is TaskStatus.PENDING

    def is_processing(self) -> bool:
        return self is TaskStatus.PROCESSING

    def is_completed(self) -> bool:
        return self is TaskStatus.COMPLETED

    def is_failed(self) -> bool:
        return self is TaskStatus.FAILED

    def is_finished(self) -> bool:
        return self.is_completed() or self.is_failed()


@dataclass(frozen=True)
class ProcessedImage:
    """하나의 해상도로 생성된 변환 이미지를 나타내는 Value Object"""

    resolution: Resolution
    path: str
    content_hash: str
    produced_at: datetime = field(default_factory=utcnow, compare=False)

    def __post_init__(self):
        if not self.path or not self.path.strip():
            raise ValidationError("Image path cannot be empty", field="path")
        if not MD5_PATTERN.match(self.content_hash or ""):
            raise ValidationError("Invalid MD5 format", field="content_hash")


# --- Aggregate Root ---


@dataclass(eq=False)
class Task:
    """이미지 처리 요청 하나와 그 결과를 나타내는 Aggregate Root.

    생성자는 저장소에서 복원할 때만 직접 호출합니다.
    새 Task는 반드시 Task.create()로 만듭니다.
    """

    id: TaskId
    price: Price
    original_path: str
    status: TaskStatus
    created_at: datetime
    updated_at: datetime
    error: str | None = None
    images: list[ProcessedImage] = field(default_factory=list)
    events: list[Event] = field(default_factory=list, repr=False)

    def __post_init__(self):
        if not self.original_path or not self.original_path.strip():
            raise ValidationError(
                "Original path cannot be empty", field="originalPath"
            )

    @staticmethod
    def create(original_path: str) -> "Task":
        """새로운 대기 상태의 Task를 생성하고 이벤트를 기록합니다."""
        now = utcnow()
        task = Task(
            id=TaskId.generate(),
            price=Price.random(),
            original_path=original_path,
            status=TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        task.events.append(TaskCreated(task_id=str(task.id), created_at=now))
        return task

    def pull_events(self) -> list[Event]:
        """수집된 이벤트를 반환하고 내부 리스트를 비웁니다."""
        pulled_events = self.events[:]
        self.events.clear()
        return pulled_events

    def start_processing(self):
        if not self.status.is_pending():
            raise StateError(
                "Can only start processing from pending status",
                status=self.status.value,
            )
        self.status = TaskStatus.PROCESSING
        self._touch()
        self.events.append(TaskProcessingStarted(task_id=str(self.id)))

    def complete(self, images: list[ProcessedImage]):
        """변환 이미지 목록 전체로 교체하고 완료 상태로 변경합니다."""
        if not self.status.is_processing():
            raise StateError(
                "Can only complete from processing status", status=self.status.value
            )
        if not images:
            raise ValidationError("Completed task must have at least one image")
        self.status = TaskStatus.COMPLETED
        self.images = list(images)
        self.error = None
        self._touch()
        self.events.append(
            TaskCompleted(task_id=str(self.id), image_count=len(self.images))
        )

    def fail(self, message: str):
        """완료되지 않은 Task를 실패 상태로 변경하고 메시지를 기록합니다."""
        if self.status.is_completed():
            raise StateError("Cannot fail a completed task", status=self.status.value)
        if not message or not message.strip():
            raise ValidationError("Error message cannot be empty")
        self.status = TaskStatus.FAILED
        self.error = message
        self._touch()
        self.events.append(TaskFailed(task_id=str(self.id), error=message))

    def add_image(self, image: ProcessedImage):
        if not self.status.is_processing():
            raise StateError(
                "Can only add images during processing", status=self.status.value
            )
        self.images.append(image)
        self._touch()

    def _touch(self):
        # 같은 시각에 연속 전이가 일어나도 updated_at은 반드시 증가해야 합니다.
        now = utcnow()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now

    @override
    def __eq__(self, other: object):
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    @override
    def __hash__(self):
        return hash(self.id)
