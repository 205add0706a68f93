from typing import Protocol

from image_task_service.domain.model import ProcessedImage


class VariantProducer(Protocol):
    async def produce_variants(
        self, source_path: str, file_name: str
    ) -> list[ProcessedImage]:
        """원본 이미지로부터 지원하는 모든 해상도의 변환 이미지를 생성합니다.

        Args:
            source_path: 로컬 파일 경로 또는 http(s) URL
            file_name: 출력 디렉토리와 확장자를 정할 원본 파일 이름

        Returns:
            해상도마다 하나씩, Resolution 선언 순서로 정렬된 변환 이미지 목록

        Raises:
            ProcessingError: 원본을 읽거나 디코딩하거나 결과를 쓰지 못한 경우
        """
        ...
