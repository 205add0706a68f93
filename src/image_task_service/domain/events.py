from dataclasses import dataclass
from datetime import datetime


class Event:
    """모든 도메인 이벤트의 기본 클래스 (마커 인터페이스 역할)"""

    pass


@dataclass(frozen=True)
class TaskCreated(Event):
    """Task가 생성되었을 때 발생하는 이벤트"""

    task_id: str
    created_at: datetime


@dataclass(frozen=True)
class TaskProcessingStarted(Event):
    """Task가 처리 중 상태로 변경되었을 때 발생하는 이벤트"""

    task_id: str


@dataclass(frozen=True)
class TaskCompleted(Event):
    """Task의 모든 변환 이미지가 생성되었을 때 발생하는 이벤트"""

    task_id: str
    image_count: int


@dataclass(frozen=True)
class TaskFailed(Event):
    """Task 처리에 실패했을 때 발생하는 이벤트"""

    task_id: str
    error: str
