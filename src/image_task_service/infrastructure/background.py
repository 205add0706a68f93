from __future__ import annotations

import asyncio
import functools
from typing import Any, Coroutine

from loguru import logger


class BackgroundTaskRunner:
    """호출자가 기다리지 않는 백그라운드 작업을 asyncio.Task로 실행하고 추적합니다.

    키 하나당 동시에 실행 중인 작업은 최대 하나입니다.
    실행 중인 작업에 대한 강한 참조를 유지하므로 작업이 도중에 GC되지 않습니다.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}
        self._closed = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def is_running(self, key: str) -> bool:
        return key in self._tasks

    def submit(self, key: str, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """작업을 이벤트 루프에 등록하고 즉시 반환합니다."""
        if self._closed:
            coro.close()
            raise RuntimeError("BackgroundTaskRunner is shut down.")
        if key in self._tasks:
            coro.close()
            raise RuntimeError(f"Background work for {key} is already running.")

        task = asyncio.get_running_loop().create_task(coro, name=f"background-{key}")
        self._tasks[key] = task
        task.add_done_callback(functools.partial(self._on_done, key))
        logger.debug(f"Background work submitted for {key}.")
        return task

    def _on_done(self, key: str, task: asyncio.Task[Any]) -> None:
        self._tasks.pop(key, None)
        if task.cancelled():
            logger.warning(f"Background work for {key} was cancelled.")
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(
                f"Background work for {key} ended with an unhandled error."
            )
        else:
            logger.debug(f"Background work for {key} finished.")

    async def join(self) -> None:
        """실행 중인 모든 작업이 끝날 때까지 기다립니다. 대기 중 새로 등록된 작업도 포함합니다."""
        while self._tasks:
            await asyncio.gather(*self._tasks.values(), return_exceptions=True)

    async def shutdown(self) -> None:
        """새 작업 등록을 막고 남은 작업이 끝날 때까지 기다립니다."""
        self._closed = True
        if self._tasks:
            logger.info(f"Waiting for {len(self._tasks)} background task(s) to finish...")
        await self.join()
