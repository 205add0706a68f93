from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """환경 변수(IMAGE_TASKS_*)와 .env 파일에서 읽는 애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_prefix="IMAGE_TASKS_", env_file=".env", extra="ignore"
    )

    database_url: str = "sqlite:///image_tasks.db"
    output_dir: Path = Path("./output")
    log_level: str = "INFO"
    log_file: Path | None = None
    fetch_timeout: float = 30.0
    echo_sql: bool = False
