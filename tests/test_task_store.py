import json
import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from taskboard.models.enums import TaskPriority, TaskStatus
from taskboard.realtime.events import LocalEventBus
from taskboard.storage.blobs import MemoryBlobStore
from taskboard.tasks.domain import TaskDraft
from taskboard.tasks.store import DEFAULT_KEY, PersistenceError, TaskStore

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

class Clock:
    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def tick(self, **kw) -> None:
        self.now += timedelta(**kw)

class FailingBlobStore(MemoryBlobStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail = False

    def set(self, key: str, value: str) -> None:
        if self.fail:
            raise OSError("quota exceeded")
        super().set(key, value)

class SlowBlobStore(MemoryBlobStore):
    def set(self, key: str, value: str) -> None:
        time.sleep(0.01)
        super().set(key, value)

def draft(**kw) -> TaskDraft:
    base = {
        "title": "Write docs",
        "description": "API reference",
        "status": TaskStatus.todo,
        "priority": TaskPriority.low,
        "assigned_to": "a@example.com",
        "created_by": "a@example.com",
        "tags": ["docs"],
    }
    base.update(kw)
    return TaskDraft(**base)

@pytest.fixture()
def clock() -> Clock:
    return Clock()

@pytest.fixture()
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()

@pytest.fixture()
def store(blobs, clock) -> TaskStore:
    s = TaskStore(blobs, clock=clock)
    s.initialize()
    return s

def persisted(blobs: MemoryBlobStore) -> list[dict]:
    return json.loads(blobs.get(DEFAULT_KEY))

def test_empty_store_seeds_three_sample_tasks(blobs, clock):
    s = TaskStore(blobs, clock=clock)
    assert s.loading is True

    s.initialize()

    assert s.loading is False
    assert [t.id for t in s.tasks] == ["1", "2", "3"]
    assert [t["id"] for t in persisted(blobs)] == ["1", "2", "3"]

def test_persisted_data_wins_over_seed(blobs, clock):
    first = TaskStore(blobs, clock=clock)
    first.initialize()
    first.delete_task("1")
    first.delete_task("2")

    second = TaskStore(blobs, clock=clock)
    second.initialize()
    assert [t.id for t in second.tasks] == ["3"]

def test_empty_persisted_list_is_not_reseeded(blobs, clock):
    blobs.set(DEFAULT_KEY, "[]")
    s = TaskStore(blobs, clock=clock)
    s.initialize()
    assert s.tasks == []

@pytest.mark.parametrize("raw", ["", "not json", "{}", '[{"id": "1"}]', '[{"title": 3}]'])
def test_malformed_blob_is_treated_as_absent(blobs, clock, raw):
    blobs.set(DEFAULT_KEY, raw)
    s = TaskStore(blobs, clock=clock)
    s.initialize()

    assert [t.id for t in s.tasks] == ["1", "2", "3"]
    assert len(persisted(blobs)) == 3

def test_create_assigns_identity_and_timestamps(store, clock):
    task = store.create_task(draft())

    assert task.id not in {"1", "2", "3"}
    assert task.created_at == clock.now
    assert task.updated_at == clock.now
    assert task.title == "Write docs"
    assert store.tasks[-1] == task

def test_create_accepts_plain_mapping(store):
    task = store.create_task({"title": "From a dict", "createdBy": "b@example.com", "assignedTo": "b@example.com"})
    assert task.created_by == "b@example.com"
    assert task.status == TaskStatus.todo

def test_created_ids_are_pairwise_distinct(store):
    ids = [store.create_task(draft(title=f"t{i}")).id for i in range(50)]
    assert len(set(ids)) == 50

def test_id_collisions_are_retried(blobs, clock):
    # "1" and "2" collide with sample tasks and must be skipped
    ids = iter(["1", "2", "x"])
    s = TaskStore(blobs, clock=clock, id_factory=lambda: next(ids))
    s.initialize()
    assert s.create_task(draft()).id == "x"

def test_created_task_visible_in_same_turn(store):
    task = store.create_task(draft(status=TaskStatus.in_progress))
    found = store.get_tasks_by_status(TaskStatus.in_progress)
    assert task in found
    assert found[-1].title == "Write docs"

def test_every_mutation_is_flushed_before_returning(store, blobs):
    task = store.create_task(draft())
    assert persisted(blobs)[-1]["id"] == task.id

    store.update_task(task.id, {"title": "Renamed"})
    assert persisted(blobs)[-1]["title"] == "Renamed"

    store.toggle_task_status(task.id)
    assert persisted(blobs)[-1]["status"] == "in-progress"

    store.delete_task(task.id)
    assert task.id not in [t["id"] for t in persisted(blobs)]

def test_blob_uses_camel_case_keys(store, blobs):
    row = persisted(blobs)[0]
    assert {"assignedTo", "createdBy", "createdAt", "updatedAt", "dueDate"} <= set(row)

def test_update_merges_and_refreshes_updated_at(store, clock):
    task = store.create_task(draft())
    clock.tick(minutes=5)

    updated = store.update_task(task.id, {"status": "completed", "priority": "high"})

    assert updated is not None
    assert updated.status == TaskStatus.completed
    assert updated.priority == TaskPriority.high
    assert updated.title == task.title
    assert updated.created_at == task.created_at
    assert updated.updated_at == clock.now

def test_update_moves_task_between_status_buckets(store):
    task = store.create_task(draft(status=TaskStatus.todo))
    store.update_task(task.id, {"status": "completed"})

    assert task.id in [t.id for t in store.get_tasks_by_status("completed")]
    assert task.id not in [t.id for t in store.get_tasks_by_status("todo")]

def test_update_cannot_rewrite_identity_or_author(store):
    task = store.create_task(draft(created_by="a@example.com"))
    updated = store.update_task(
        task.id,
        {"id": "hijack", "createdBy": "mallory@example.com", "createdAt": "2000-01-01T00:00:00Z", "title": "ok"},
    )
    assert updated.id == task.id
    assert updated.created_by == "a@example.com"
    assert updated.created_at == task.created_at
    assert updated.title == "ok"

def test_update_explicit_null_clears_due_date(store, clock):
    task = store.create_task(draft(due_date=clock.now + timedelta(days=1)))
    assert store.update_task(task.id, {"dueDate": None}).due_date is None
    # other nulls are ignored
    assert store.update_task(task.id, {"title": None}).title == task.title

def test_update_unknown_id_is_a_noop(store, blobs):
    before = store.tasks
    raw_before = blobs.get(DEFAULT_KEY)

    assert store.update_task("nonexistent", {"title": "x"}) is None
    assert store.tasks == before
    assert blobs.get(DEFAULT_KEY) == raw_before

def test_delete_removes_from_every_query(store):
    task = store.create_task(draft(assigned_to="z@example.com"))
    assert store.delete_task(task.id) is True

    assert store.get_task(task.id) is None
    assert all(t.id != task.id for t in store.tasks)
    for status in TaskStatus:
        assert all(t.id != task.id for t in store.get_tasks_by_status(status))
    assert store.get_tasks_by_assignee("z@example.com") == []

def test_delete_unknown_id_is_a_noop(store):
    before = store.tasks
    assert store.delete_task("nope") is False
    assert store.tasks == before

@pytest.mark.parametrize(
    "start,expected",
    [
        (TaskStatus.todo, [TaskStatus.in_progress, TaskStatus.completed, TaskStatus.todo]),
        (TaskStatus.in_progress, [TaskStatus.completed, TaskStatus.todo, TaskStatus.in_progress]),
        (TaskStatus.completed, [TaskStatus.todo, TaskStatus.in_progress, TaskStatus.completed]),
    ],
)
def test_toggle_cycles_status(store, start, expected):
    task = store.create_task(draft(status=start))
    seen = [store.toggle_task_status(task.id).status for _ in range(3)]
    assert seen == expected

def test_toggle_unknown_id_is_a_noop(store):
    before = store.tasks
    assert store.toggle_task_status("missing") is None
    assert store.tasks == before

def test_queries_preserve_insertion_order(store):
    a = store.create_task(draft(title="a", assigned_to="q@example.com"))
    b = store.create_task(draft(title="b", assigned_to="other@example.com"))
    c = store.create_task(draft(title="c", assigned_to="q@example.com"))

    assert [t.id for t in store.get_tasks_by_assignee("q@example.com")] == [a.id, c.id]
    todo_ids = [t.id for t in store.get_tasks_by_status("todo")]
    assert todo_ids == ["3", a.id, b.id, c.id]

def test_assignee_match_is_exact(store):
    store.create_task(draft(assigned_to="Q@example.com"))
    assert store.get_tasks_by_assignee("q@example.com") == []

def test_round_trip_through_fresh_store(store, blobs, clock):
    store.create_task(draft(title="with due", due_date=datetime(2026, 4, 2, 15, 30, 12, 345000, tzinfo=timezone.utc)))
    store.create_task(draft(title="tags kept in order", tags=["b", "a", "b"]))
    original = store.tasks

    reloaded = TaskStore(blobs, clock=clock)
    reloaded.initialize()

    assert reloaded.tasks == original
    assert [t.id for t in reloaded.tasks] == [t.id for t in original]
    assert isinstance(reloaded.tasks[-2].due_date, datetime)
    assert reloaded.tasks[-2].due_date == datetime(2026, 4, 2, 15, 30, 12, 345000, tzinfo=timezone.utc)
    assert reloaded.tasks[-1].tags == ["b", "a", "b"]

def test_failed_write_leaves_memory_untouched(clock):
    blobs = FailingBlobStore()
    s = TaskStore(blobs, clock=clock)
    s.initialize()
    before = s.tasks
    blobs.fail = True

    with pytest.raises(PersistenceError):
        s.create_task(draft())
    with pytest.raises(PersistenceError):
        s.update_task("1", {"title": "x"})
    with pytest.raises(PersistenceError):
        s.delete_task("2")

    assert s.tasks == before

def test_initialize_survives_unwritable_store(clock):
    blobs = FailingBlobStore()
    blobs.fail = True
    s = TaskStore(blobs, clock=clock)
    s.initialize()

    assert s.loading is False
    assert [t.id for t in s.tasks] == ["1", "2", "3"]

def test_mutations_publish_events(blobs, clock):
    bus = LocalEventBus()
    seen = []
    bus.subscribe(lambda e: seen.append((e.type, e.data)))
    s = TaskStore(blobs, clock=clock, events=bus)
    s.initialize()

    task = s.create_task(draft())
    s.update_task(task.id, {"title": "t2"})
    s.delete_task(task.id)
    s.update_task("missing", {"title": "x"})

    assert [t for t, _ in seen] == ["task-created", "task-updated", "task-deleted"]
    assert seen[0][1]["task"]["id"] == task.id
    assert seen[2][1] == {"taskId": task.id}

def test_failing_subscriber_does_not_undo_mutation(blobs, clock):
    bus = LocalEventBus()

    def boom(event):
        raise RuntimeError("subscriber down")

    bus.subscribe(boom)
    s = TaskStore(blobs, clock=clock, events=bus)
    s.initialize()

    task = s.create_task(draft())
    assert s.get_task(task.id) == task

def run_together(n: int, fn) -> None:
    barrier = threading.Barrier(n)

    def worker(i: int) -> None:
        barrier.wait()
        fn(i)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

def test_concurrent_creates_are_all_kept(clock):
    blobs = SlowBlobStore()
    s = TaskStore(blobs, clock=clock)
    s.initialize()

    run_together(8, lambda i: s.create_task(draft(title=f"parallel {i}")))

    assert len(s.tasks) == 11
    assert len(persisted(blobs)) == 11
    assert len({t.id for t in s.tasks}) == 11

def test_concurrent_toggles_each_advance_once(clock):
    s = TaskStore(SlowBlobStore(), clock=clock)
    s.initialize()

    # nine steps around a three-state cycle lands back where it started
    run_together(9, lambda i: s.toggle_task_status("3"))

    assert s.get_task("3").status == TaskStatus.todo
