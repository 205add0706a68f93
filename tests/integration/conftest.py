from pathlib import Path

import pytest
from PIL import Image as PILImage
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from image_task_service.infrastructure.persistence.database import create_tables


@pytest.fixture
def in_memory_session_factory():
    """In-memory SQLite 데이터베이스를 사용하는 세션 팩토리를 제공하는 Fixture"""
    engine = create_engine("sqlite:///:memory:")
    create_tables(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def make_image(tmp_path: Path):
    """지정한 크기와 형식으로 실제 이미지 파일을 만드는 Fixture"""

    def _make(
        name: str = "photo.png",
        size: tuple[int, int] = (1600, 1200),
        image_format: str = "PNG",
        mode: str = "RGB",
    ) -> Path:
        path = tmp_path / "sources" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        color = (200, 30, 60, 128) if mode == "RGBA" else (200, 30, 60)
        PILImage.new(mode, size, color).save(path, format=image_format)
        return path

    return _make
