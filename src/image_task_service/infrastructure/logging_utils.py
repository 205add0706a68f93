"""로깅 및 트레이싱 유틸리티"""

import functools
import inspect
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> | <yellow>{extra}</yellow>"
)


def configure_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """stderr 싱크와 (설정된 경우) JSON 파일 싱크를 설치합니다."""
    logger.remove()
    if sys.stderr:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            encoding="utf-8",
            backtrace=True,
            diagnose=True,
            serialize=True,
        )


def log_function_call(func: Callable) -> Callable:
    """함수 호출을 자동으로 로깅하는 데코레이터

    함수의 시작, 종료, 실행 시간을 로깅합니다.
    """

    def _signature(args, kwargs) -> str:
        # 메서드인 경우 self는 제외
        args_repr = [repr(a) for a in args[1:]] if args else []
        kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
        return ", ".join(args_repr + kwargs_repr)

    func_name = f"{func.__module__}.{func.__qualname__}"

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        logger.debug(f"→ {func_name}({_signature(args, kwargs)})")

        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            elapsed = time.perf_counter() - start_time
            logger.debug(f"← {func_name} completed in {elapsed:.3f}s")
            return result
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.error(
                f"✗ {func_name} failed after {elapsed:.3f}s: {e.__class__.__name__}: {e}"
            )
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        logger.debug(f"→ {func_name}({_signature(args, kwargs)})")

        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - start_time
            logger.debug(f"← {func_name} completed in {elapsed:.3f}s")
            return result
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.error(
                f"✗ {func_name} failed after {elapsed:.3f}s: {e.__class__.__name__}: {e}"
            )
            raise

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    else:
        return sync_wrapper


@contextmanager
def log_step(step_name: str, **extra_context):
    """단계별 작업을 로깅하는 컨텍스트 매니저

    Usage:
        with log_step("Resizing image", resolution="800"):
            # do work
            pass
    """
    step_logger = logger.bind(**extra_context)
    step_logger.info(f"▶ {step_name}")
    start_time = time.perf_counter()

    try:
        yield
        elapsed = time.perf_counter() - start_time
        step_logger.bind(duration=elapsed).info(
            f"✓ {step_name} completed in {elapsed:.3f}s"
        )
    except Exception as e:
        elapsed = time.perf_counter() - start_time
        step_logger.bind(duration=elapsed, error_type=e.__class__.__name__).error(
            f"✗ {step_name} failed after {elapsed:.3f}s: {e.__class__.__name__}: {e}"
        )
        raise
