from dataclasses import dataclass
from datetime import datetime
from typing import Any

from image_task_service.domain.model import Task


# 1. Queries
class Query:
    """Marker class for queries."""
    pass

@dataclass(frozen=True)
class GetTaskQuery(Query):
    task_id: str

# 2. Result DTOs (Data Transfer Objects)
@dataclass(frozen=True)
class ImageResponseDTO:
    resolution: str
    path: str

@dataclass(frozen=True)
class TaskResponseDTO:
    task_id: str
    status: str
    price: float
    created_at: datetime | None = None
    updated_at: datetime | None = None
    images: list[ImageResponseDTO] | None = None
    error: str | None = None

    @classmethod
    def pending(cls, task: Task) -> "TaskResponseDTO":
        """생성 직후 호출자에게 돌려줄 최소 응답을 만듭니다."""
        return cls(task_id=str(task.id), status=task.status.value, price=task.price.value)

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponseDTO":
        """상태에 따라 노출할 필드를 골라 응답을 만듭니다."""
        finished = task.status.is_finished()
        return cls(
            task_id=str(task.id),
            status=task.status.value,
            price=task.price.value,
            created_at=task.created_at if finished else None,
            updated_at=task.updated_at if finished else None,
            images=[
                ImageResponseDTO(resolution=image.resolution.value, path=image.path)
                for image in task.images
            ]
            if task.status.is_completed()
            else None,
            error=task.error if task.status.is_failed() else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """외부 응답 형식(camelCase)으로 변환합니다. 값이 없는 필드는 생략합니다."""
        payload: dict[str, Any] = {
            "taskId": self.task_id,
            "status": self.status,
            "price": self.price,
        }
        if self.created_at is not None:
            payload["createdAt"] = self.created_at.isoformat()
        if self.updated_at is not None:
            payload["updatedAt"] = self.updated_at.isoformat()
        if self.images is not None:
            payload["images"] = [
                {"resolution": image.resolution, "path": image.path}
                for image in self.images
            ]
        if self.error is not None:
            payload["error"] = self.error
        return payload
