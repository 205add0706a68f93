from typing import ClassVar


class TaskServiceError(Exception):
    """서비스에서 발생하는 모든 예외의 기반 클래스입니다.

    kind 태그는 경계 계층(HTTP, CLI)이 응답 코드로 변환할 때 사용합니다.
    """

    kind: ClassVar[str] = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskServiceError):
    """호출자의 입력 값이 잘못되었을 때 발생하는 예외입니다."""

    kind: ClassVar[str] = "validation"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TaskServiceError):
    """주어진 식별자에 해당하는 Task가 없을 때 발생하는 예외입니다."""

    kind: ClassVar[str] = "not_found"

    def __init__(self, task_id: str):
        super().__init__(f"Task with id {task_id} not found")
        self.task_id = task_id


class StateError(TaskServiceError):
    """허용되지 않는 상태 전이를 시도했을 때 발생하는 예외입니다."""

    kind: ClassVar[str] = "state"

    def __init__(self, message: str, status: str | None = None):
        super().__init__(message)
        self.status = status


class ProcessingError(TaskServiceError):
    """이미지 변환에 실패했을 때 발생하는 예외입니다."""

    kind: ClassVar[str] = "processing"


class PersistenceError(TaskServiceError):
    """저장소에 접근할 수 없거나 레코드가 없을 때 발생하는 예외입니다."""

    kind: ClassVar[str] = "persistence"

    def __init__(self, message: str, task_id: str | None = None):
        super().__init__(message)
        self.task_id = task_id
