import argparse
import asyncio
import json
import sys

from loguru import logger

from image_task_service import bootstrap
from image_task_service.application.commands import CreateTaskCommand
from image_task_service.application.queries import GetTaskQuery, TaskResponseDTO
from image_task_service.config import Settings
from image_task_service.domain.exceptions import TaskServiceError
from image_task_service.infrastructure.logging_utils import configure_logging

EXIT_CODES = {
    "validation": 2,
    "not_found": 3,
    "state": 4,
    "processing": 5,
    "persistence": 6,
}


def _print(response: TaskResponseDTO) -> None:
    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))


async def run(args: argparse.Namespace, settings: Settings) -> None:
    """요청된 서브커맨드를 실행하고 응답을 JSON으로 출력합니다."""
    app = bootstrap.bootstrap(settings)
    try:
        if args.command == "process":
            created = await app.bus.handle(CreateTaskCommand(original_path=args.path))
            _print(created)
            if args.wait:
                await app.runner.join()
                _print(await app.query_handler.handle(GetTaskQuery(task_id=created.task_id)))
        elif args.command == "status":
            _print(await app.query_handler.handle(GetTaskQuery(task_id=args.task_id)))
    finally:
        await app.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-tasks", description="Create and inspect image resize tasks."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser("process", help="create a task for an image")
    process.add_argument("path", help="local file path or http(s) URL")
    process.add_argument(
        "--no-wait",
        dest="wait",
        action="store_false",
        help="print only the creation response",
    )

    status = subparsers.add_parser("status", help="show a task")
    status.add_argument("task_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    """메인 애플리케이션 진입점"""
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, settings.log_file)

    try:
        asyncio.run(run(args, settings))
    except TaskServiceError as e:
        logger.error(f"{e.kind}: {e.message}")
        return EXIT_CODES.get(e.kind, 1)
    except KeyboardInterrupt:
        logger.info("Interrupted. Exiting.")
        return 130
    except Exception:
        logger.exception("Critical error during execution")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
