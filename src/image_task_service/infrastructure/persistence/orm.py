from datetime import UTC

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)
from sqlalchemy.types import TypeDecorator

from image_task_service.domain.model import Resolution, TaskStatus

# --- Custom Types ---

class UTCDateTime(TypeDecorator):
    """SQLite는 타임존을 저장하지 않으므로 읽을 때 UTC로 복원합니다."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

# SQLAlchemy 2.0 스타일의 메타데이터 객체
metadata = MetaData()


tasks_table = Table(
    "tasks",
    metadata,
    Column("task_id", String(24), primary_key=True),
    Column(
        "status",
        Enum(TaskStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    ),
    Column("price", Float, nullable=False),
    Column("original_path", Text, nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
    Column("updated_at", UTCDateTime, nullable=False),
    Column("error", Text, nullable=True),
)

# 운영 조회용 인덱스 (상태별 최신순, 전체 최신순)
Index(
    "ix_tasks_status_created_at",
    tasks_table.c.status,
    tasks_table.c.created_at.desc(),
)
Index("ix_tasks_created_at", tasks_table.c.created_at.desc())

# Task.images 목록을 역정규화한 하위 레코드
task_images_table = Table(
    "task_images",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "task_id",
        String(24),
        ForeignKey("tasks.task_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("position", Integer, nullable=False),
    Column(
        "resolution",
        Enum(Resolution, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    ),
    Column("path", Text, nullable=False),
    Column("md5", String(32), nullable=False),
    Column("created_at", UTCDateTime, nullable=False),
)
