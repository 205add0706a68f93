from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from image_task_service.config import Settings
from image_task_service.infrastructure.persistence.orm import metadata


def create_engine_from_settings(settings: Settings) -> Engine:
    """설정의 database_url로 SQLAlchemy 엔진을 생성합니다."""
    engine = create_engine(settings.database_url, echo=settings.echo_sql)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """세션 팩토리를 생성하고 반환합니다."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    """메타데이터에 정의된 모든 테이블을 생성합니다."""
    metadata.create_all(engine)


def drop_tables(engine: Engine) -> None:
    """메타데이터에 정의된 모든 테이블을 삭제합니다."""
    metadata.drop_all(engine)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
