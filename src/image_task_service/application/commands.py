from dataclasses import dataclass


class Command:
    """모든 커맨드의 기본 클래스 (마커 역할)"""

    pass


@dataclass(frozen=True)
class CreateTaskCommand(Command):
    """이미지 처리 Task 생성을 요청하는 커맨드"""

    original_path: str
