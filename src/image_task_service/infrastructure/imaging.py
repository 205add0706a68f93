from __future__ import annotations

import asyncio
import hashlib
import io
import re
from pathlib import Path, PurePath
from typing import Any

import httpx
from loguru import logger
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from image_task_service.domain.exceptions import ProcessingError
from image_task_service.domain.model import ProcessedImage, Resolution
from image_task_service.infrastructure.logging_utils import log_step

REMOTE_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def is_remote(path: str) -> bool:
    return REMOTE_PATTERN.match(path) is not None


class PillowVariantProducer:
    """Pillow로 원본 이미지를 해상도별로 리사이즈해 파일로 저장하는 VariantProducer 구현체.

    결과 파일은 <output_dir>/<원본 이름>/<가로 폭>/<md5><확장자> 에 저장됩니다.
    """

    def __init__(
        self,
        output_dir: Path,
        fetch_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.output_dir = output_dir
        self.fetch_timeout = fetch_timeout
        self._transport = transport

    async def produce_variants(
        self, source_path: str, file_name: str
    ) -> list[ProcessedImage]:
        try:
            source = await self._load_source(source_path)
            name = PurePath(file_name)
            image_dir = self.output_dir / name.stem
            images = await asyncio.gather(
                *(
                    asyncio.to_thread(
                        self._produce_variant, source, image_dir, resolution, name.suffix
                    )
                    for resolution in Resolution
                )
            )
        except ProcessingError:
            raise
        except (OSError, UnidentifiedImageError, ValueError, httpx.HTTPError) as e:
            raise ProcessingError(f"Failed to process image: {e}") from e

        return sorted(images, key=lambda image: image.resolution.order)

    async def _load_source(self, source_path: str) -> bytes:
        if not is_remote(source_path):
            return await asyncio.to_thread(Path(source_path).read_bytes)

        with log_step("Fetching remote image", url=source_path):
            async with httpx.AsyncClient(
                timeout=self.fetch_timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(source_path)
                response.raise_for_status()
                return response.content

    def _produce_variant(
        self, source: bytes, image_dir: Path, resolution: Resolution, extension: str
    ) -> ProcessedImage:
        with log_step("Resizing image", resolution=resolution.value):
            with PILImage.open(io.BytesIO(source)) as original:
                image_format = original.format
                height = max(1, round(original.height * resolution.width / original.width))
                resized = original.resize(
                    (resolution.width, height), PILImage.Resampling.LANCZOS
                )

            buffer = io.BytesIO()
            resized.save(buffer, format=image_format)
            data = buffer.getvalue()

            md5_hash = hashlib.md5(data).hexdigest()
            resolution_dir = image_dir / resolution.value
            resolution_dir.mkdir(parents=True, exist_ok=True)
            output_path = resolution_dir / f"{md5_hash}{extension}"
            output_path.write_bytes(data)

        logger.debug(f"Wrote {len(data)} bytes to {output_path}")
        return ProcessedImage(
            resolution=resolution, path=str(output_path), content_hash=md5_hash
        )

    @staticmethod
    def is_valid_image(file_path: str | Path) -> bool:
        """Pillow가 형식을 인식할 수 있는 이미지 파일인지 확인합니다."""
        try:
            with PILImage.open(file_path) as image:
                return image.format is not None
        except (OSError, UnidentifiedImageError):
            return False

    @staticmethod
    def image_metadata(file_path: str | Path) -> dict[str, Any]:
        """이미지의 가로/세로 크기, 형식, 파일 크기를 반환합니다."""
        path = Path(file_path)
        try:
            with PILImage.open(path) as image:
                return {
                    "width": image.width,
                    "height": image.height,
                    "format": image.format,
                    "size": path.stat().st_size,
                }
        except (OSError, UnidentifiedImageError) as e:
            raise ProcessingError(f"Failed to get image metadata: {e}") from e
