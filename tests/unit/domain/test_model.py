from datetime import timedelta

import pytest

from image_task_service.domain.events import (
    TaskCompleted,
    TaskCreated,
    TaskFailed,
    TaskProcessingStarted,
)
from image_task_service.domain.exceptions import StateError, ValidationError
from image_task_service.domain.model import (
    Price,
    ProcessedImage,
    Resolution,
    Task,
    TaskId,
    TaskStatus,
)

MD5_A = "a" * 32
MD5_B = "b" * 32


def make_images() -> list[ProcessedImage]:
    return [
        ProcessedImage(resolution=Resolution.R1024, path="/out/x/1024/a.jpg", content_hash=MD5_A),
        ProcessedImage(resolution=Resolution.R800, path="/out/x/800/b.jpg", content_hash=MD5_B),
    ]


def processing_task() -> Task:
    task = Task.create("/tmp/x.jpg")
    task.start_processing()
    return task


# --- Value Objects ---


def test_task_id_generate_is_24_hex_and_unique():
    first = TaskId.generate()
    second = TaskId.generate()

    assert len(str(first)) == 24
    assert TaskId.is_valid(str(first))
    assert first != second


@pytest.mark.parametrize("value", ["", "   ", "xyz", "0" * 23, "g" * 24])
def test_task_id_rejects_malformed_values(value: str):
    with pytest.raises(ValidationError):
        TaskId(value)


def test_task_id_equality_is_by_value():
    assert TaskId("0123456789abcdef01234567") == TaskId("0123456789abcdef01234567")


def test_price_is_rounded_to_two_decimals():
    assert Price(12.3456).value == 12.35
    assert str(Price(7)) == "7.00"


@pytest.mark.parametrize("value", [4.99, 50.01, -1, 100])
def test_price_outside_range_is_rejected(value: float):
    with pytest.raises(ValidationError):
        Price(value)


def test_price_bounds_are_inclusive():
    assert Price(5).value == 5
    assert Price(50).value == 50


def test_random_price_stays_in_range():
    for _ in range(200):
        assert 5 <= Price.random().value <= 50


def test_resolution_widths_and_order():
    assert [r.width for r in Resolution] == [1024, 800]
    assert Resolution.R1024.order < Resolution.R800.order


def test_task_status_predicates():
    assert TaskStatus.PENDING.is_pending()
    assert TaskStatus.PROCESSING.is_processing()
    assert TaskStatus.COMPLETED.is_finished()
    assert TaskStatus.FAILED.is_finished()
    assert not TaskStatus.PROCESSING.is_finished()


def test_processed_image_validates_path_and_hash():
    with pytest.raises(ValidationError):
        ProcessedImage(resolution=Resolution.R800, path="", content_hash=MD5_A)
    with pytest.raises(ValidationError):
        ProcessedImage(resolution=Resolution.R800, path="/out/a.jpg", content_hash="not-a-hash")


def test_processed_image_equality_ignores_timestamp():
    image = ProcessedImage(resolution=Resolution.R800, path="/out/a.jpg", content_hash=MD5_A)
    later = ProcessedImage(
        resolution=Resolution.R800,
        path="/out/a.jpg",
        content_hash=MD5_A,
        produced_at=image.produced_at + timedelta(hours=1),
    )
    assert image == later


# --- Task Aggregate ---


def test_create_starts_pending_and_records_event():
    task = Task.create("/tmp/x.jpg")

    assert task.status == TaskStatus.PENDING
    assert 5 <= task.price.value <= 50
    assert task.created_at == task.updated_at
    assert task.images == []
    assert task.error is None

    events = task.pull_events()
    assert len(events) == 1
    assert isinstance(events[0], TaskCreated)
    assert task.pull_events() == []


def test_two_created_tasks_have_different_ids():
    assert Task.create("/tmp/x.jpg").id != Task.create("/tmp/x.jpg").id


def test_rehydration_rejects_blank_original_path():
    task = Task.create("/tmp/x.jpg")
    with pytest.raises(ValidationError):
        Task(
            id=task.id,
            price=task.price,
            original_path="  ",
            status=TaskStatus.COMPLETED,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


def test_rehydration_records_no_events():
    task = Task.create("/tmp/x.jpg")
    restored = Task(
        id=task.id,
        price=task.price,
        original_path=task.original_path,
        status=TaskStatus.FAILED,
        created_at=task.created_at,
        updated_at=task.updated_at,
        error="boom",
    )
    assert restored.pull_events() == []
    assert restored == task


def test_start_processing_twice_raises_state_error():
    task = processing_task()

    with pytest.raises(StateError):
        task.start_processing()


def test_start_processing_bumps_updated_at():
    task = Task.create("/tmp/x.jpg")
    before = task.updated_at

    task.start_processing()

    assert task.status.is_processing()
    assert task.updated_at > before
    assert isinstance(task.pull_events()[-1], TaskProcessingStarted)


def test_complete_from_pending_raises_state_error():
    task = Task.create("/tmp/x.jpg")

    with pytest.raises(StateError):
        task.complete(make_images())


def test_complete_with_no_images_raises_validation_error():
    task = processing_task()

    with pytest.raises(ValidationError):
        task.complete([])
    assert task.status.is_processing()


def test_complete_stores_images_and_clears_error():
    task = processing_task()
    images = make_images()
    before = task.updated_at

    task.complete(images)

    assert task.status.is_completed()
    assert task.error is None
    assert task.updated_at > before
    assert [(i.resolution, i.path) for i in task.images] == [
        (i.resolution, i.path) for i in images
    ]
    assert task.images is not images
    assert isinstance(task.pull_events()[-1], TaskCompleted)


def test_fail_records_message():
    task = processing_task()

    task.fail("boom")

    assert task.status.is_failed()
    assert task.error == "boom"
    assert isinstance(task.pull_events()[-1], TaskFailed)


def test_fail_is_allowed_from_pending():
    task = Task.create("/tmp/x.jpg")

    task.fail("source vanished")

    assert task.status.is_failed()


def test_fail_after_complete_raises_state_error():
    task = processing_task()
    task.complete(make_images())

    with pytest.raises(StateError):
        task.fail("boom")
    assert task.status.is_completed()


@pytest.mark.parametrize("message", ["", "   "])
def test_fail_with_blank_message_raises_validation_error(message: str):
    task = processing_task()

    with pytest.raises(ValidationError):
        task.fail(message)


def test_add_image_only_while_processing():
    task = Task.create("/tmp/x.jpg")
    image = make_images()[0]

    with pytest.raises(StateError):
        task.add_image(image)

    task.start_processing()
    task.add_image(image)
    assert task.images == [image]


def test_updated_at_strictly_increases_across_transitions():
    task = Task.create("/tmp/x.jpg")
    stamps = [task.updated_at]

    task.start_processing()
    stamps.append(task.updated_at)
    task.add_image(make_images()[0])
    stamps.append(task.updated_at)
    task.fail("boom")
    stamps.append(task.updated_at)

    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)
