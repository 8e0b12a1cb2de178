# tests/test_reconciler.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from farm_tasks.sources.static_source import StaticSource
from farm_tasks.tasks.reconciler import (
    Reconciler,
    build_action_url,
    normalize_group_type,
    normalize_time,
    resolve_entries,
)
from farm_tasks.tasks.task_models import Batch, FeedConfiguration, Group, TaskTemplate
from farm_tasks.tasks.task_store import TaskStore

from .fakes import FakeClock, FakeScheduler

FEED_TITLE = "Alimentar Lote A (G1) 🌾"


def _run(reconciler: Reconciler, source: StaticSource, now: datetime | None = None):
    return reconciler.reconcile(
        source.batches,
        source.groups,
        source.feed_configurations,
        source.task_templates,
        now=now,
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Galpão de Postura 3", "production"),
        ("Produção Postura A", "production"),
        ("Machos Reprodutores", "males"),
        ("Matriz A", "breeders"),
        ("Reprodutoras", "breeders"),
        ("POSTURA", "production"),
        ("Crescimento", "Crescimento"),
        ("", ""),
    ],
)
def test_normalize_group_type(raw: str, expected: str) -> None:
    assert normalize_group_type(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("07:00", "07:00"),
        ("7:05", "07:05"),
        ("08:00:00", "08:00"),
        ("", None),
        ("noon", None),
        ("ab:cd", None),
        ("25:00", None),
    ],
)
def test_normalize_time(raw: str, expected: str | None) -> None:
    assert normalize_time(raw) == expected


def test_action_url_format() -> None:
    assert build_action_url("B1", "feed", "07:00") == "/tasks/execute?batchId=B1&lockTask=feed&time=07:00"


def test_end_to_end_scenario(
    store: TaskStore, reconciler: Reconciler, source: StaticSource, scheduler: FakeScheduler
) -> None:
    result = _run(reconciler, source)

    todos = store.list_todos()
    assert len(todos) == 1
    assert todos[0].task == FEED_TITLE
    assert todos[0].due_date == "2024-05-10"
    assert todos[0].is_automatic and not todos[0].is_completed

    pending = store.list_pending_tasks()
    assert len(pending) == 1
    assert pending[0].title == FEED_TITLE
    assert pending[0].action_url == "/tasks/execute?batchId=B1&lockTask=feed&time=07:00"

    # Both times get a live timer; only 07:00 fired by catch-up.
    assert [e.time for e in scheduler.scheduled] == ["07:00", "17:00"]
    assert [e.time for e in result.entries] == ["07:00", "17:00"]
    assert len(result.pending_created) == 1


def test_reconcile_is_idempotent(store: TaskStore, reconciler: Reconciler, source: StaticSource) -> None:
    _run(reconciler, source)
    before = (store.count_todos(), store.count_pending_tasks())

    second = _run(reconciler, source)

    assert (store.count_todos(), store.count_pending_tasks()) == before
    assert second.todos_created == []
    assert second.pending_created == []


def test_catch_up_fires_once_for_past_time(store: TaskStore, clock: FakeClock) -> None:
    source = StaticSource(
        feed_configurations=[FeedConfiguration("production", True, ("08:00",))],
        batches=[Batch(id="B1", name="Lote A", group_id="G1")],
        groups=[Group(id="G1", name="G1", type="Postura")],
    )
    clock.now = datetime(2024, 5, 10, 14, 0)
    reconciler = Reconciler(store, clock=clock)

    _run(reconciler, source)

    assert [p.title for p in store.list_pending_tasks()] == [FEED_TITLE]


def test_future_time_only_creates_todo(store: TaskStore, clock: FakeClock, source: StaticSource) -> None:
    clock.now = datetime(2024, 5, 10, 6, 59)
    _run(Reconciler(store, clock=clock), source)
    assert store.count_todos() == 1
    assert store.count_pending_tasks() == 0


def test_scheduled_time_equal_to_now_fires(store: TaskStore, clock: FakeClock, source: StaticSource) -> None:
    clock.now = datetime(2024, 5, 10, 7, 0, 30)
    _run(Reconciler(store, clock=clock), source)
    assert store.count_pending_tasks() == 1


def test_completed_todo_suppresses_alert(store: TaskStore, clock: FakeClock, source: StaticSource) -> None:
    clock.now = datetime(2024, 5, 10, 6, 0)
    reconciler = Reconciler(store, clock=clock)
    _run(reconciler, source)
    todo = store.find_todo(FEED_TITLE, "2024-05-10")
    assert todo is not None
    store.toggle_todo(todo.id)

    clock.now = datetime(2024, 5, 10, 18, 0)
    _run(reconciler, source)

    assert store.count_pending_tasks() == 0


def test_removed_alert_is_raised_again_by_catch_up(
    store: TaskStore, reconciler: Reconciler, source: StaticSource
) -> None:
    _run(reconciler, source)
    [pending] = store.list_pending_tasks()
    store.remove_pending_task(pending.id)

    _run(reconciler, source)

    # Dedup only looks at alerts that still exist.
    assert store.count_pending_tasks() == 1


def test_next_day_creates_fresh_entries(store: TaskStore, clock: FakeClock, source: StaticSource) -> None:
    reconciler = Reconciler(store, clock=clock)
    _run(reconciler, source)

    clock.now = datetime(2024, 5, 11, 8, 0)
    _run(reconciler, source)

    assert [t.due_date for t in store.list_todos()] == ["2024-05-10", "2024-05-11"]
    assert store.find_pending_task(FEED_TITLE, date(2024, 5, 11)) is not None
    assert store.count_pending_tasks() == 2


def test_malformed_times_are_skipped(store: TaskStore, reconciler: Reconciler, scheduler: FakeScheduler) -> None:
    source = StaticSource(
        feed_configurations=[FeedConfiguration("production", True, ("", "noon"))],
        task_templates=[TaskTemplate(title="Vacinar", default_time="later")],
        batches=[Batch(id="B1", name="Lote A", group_id="G1")],
        groups=[Group(id="G1", name="G1", type="Postura")],
    )

    result = _run(reconciler, source)

    assert result.entries == []
    assert store.count_todos() == 0
    assert store.count_pending_tasks() == 0
    assert scheduler.scheduled == []


def test_batch_without_group_is_skipped(store: TaskStore, reconciler: Reconciler, source: StaticSource) -> None:
    source.batches.append(Batch(id="B2", name="Órfão", group_id="missing"))
    source.batches.append(Batch(id="B3", name="Sem grupo", group_id=None))
    _run(reconciler, source)
    assert [t.task for t in store.list_todos()] == [FEED_TITLE]


def test_inactive_batches_and_configs_are_ignored(store: TaskStore, reconciler: Reconciler) -> None:
    source = StaticSource(
        feed_configurations=[
            FeedConfiguration("production", False, ("07:00",)),
        ],
        batches=[Batch(id="B1", name="Lote A", group_id="G1", status="inactive")],
        groups=[Group(id="G1", name="G1", type="Postura")],
    )
    _run(reconciler, source)
    assert store.count_todos() == 0

    source.batches[0] = Batch(id="B1", name="Lote A", group_id="G1")
    _run(reconciler, source)
    assert store.count_todos() == 0


def test_templates_filter_by_category_and_follow_feed(
    store: TaskStore, reconciler: Reconciler, source: StaticSource
) -> None:
    source.task_templates.extend(
        [
            TaskTemplate(title="Verificar Água", default_time="06:30", task_type="water"),
            TaskTemplate(title="Coleta de Ovos", default_time="10:00", task_type="egg", category_id="cat-1"),
            TaskTemplate(title="Pesagem", default_time="09:00", category_id="other"),
            TaskTemplate(title="Desativada", default_time="05:00", active=False),
        ]
    )

    result = _run(reconciler, source)

    assert [(e.task_type, e.time) for e in result.entries] == [
        ("feed", "07:00"),
        ("feed", "17:00"),
        ("water", "06:30"),
        ("egg", "10:00"),
    ]
    titles = [t.task for t in store.list_todos()]
    assert titles == [FEED_TITLE, "Verificar Água - Lote A 📋", "Coleta de Ovos - Lote A 📋"]
    # At 08:00 the feed (07:00) and water (06:30) entries are due; eggs (10:00) are not.
    assert [p.title for p in store.list_pending_tasks()] == [FEED_TITLE, "Verificar Água - Lote A 📋"]


def test_template_without_task_type_defaults_to_custom() -> None:
    tmpl = TaskTemplate.from_row({"title": "Limpeza", "default_time": "08:00:00", "category_id": None})
    entries = resolve_entries(
        Batch(id="B9", name="Lote Z", group_id="G9"),
        Group(id="G9", name="Galpão 9", type="Crescimento"),
        [],
        [tmpl],
    )
    assert [(e.task_type, e.time, e.title) for e in entries] == [("custom", "08:00", "Limpeza - Lote Z 📋")]
    assert entries[0].action_url == "/tasks/execute?batchId=B9&lockTask=custom&time=08:00"


def test_unmatched_group_type_matches_config_verbatim(store: TaskStore, reconciler: Reconciler) -> None:
    source = StaticSource(
        feed_configurations=[FeedConfiguration("Crescimento", True, ("07:00",))],
        batches=[Batch(id="B1", name="Lote C", group_id="G1")],
        groups=[Group(id="G1", name="Box 1", type="Crescimento")],
    )
    _run(reconciler, source)
    assert [t.task for t in store.list_todos()] == ["Alimentar Lote C (Box 1) 🌾"]


def test_scheduler_is_pruned_to_current_entries(
    reconciler: Reconciler, source: StaticSource, scheduler: FakeScheduler
) -> None:
    _run(reconciler, source)
    assert {k.time for k in scheduler.kept} == {"07:00", "17:00"}

    source.batches.clear()
    _run(reconciler, source)
    assert scheduler.kept == []


def test_fire_creates_missing_todo_then_alert(
    store: TaskStore, reconciler: Reconciler, source: StaticSource, clock: FakeClock
) -> None:
    _run(reconciler, source)
    entry_17 = [e for e in _run(reconciler, source).entries if e.time == "17:00"][0]

    # Next day, before any reconciliation pass.
    clock.now = datetime(2024, 5, 11, 17, 0)
    pending = reconciler.fire(entry_17)

    assert pending is not None
    assert pending.action_url.endswith("time=17:00")
    assert store.find_todo(FEED_TITLE, "2024-05-11") is not None
    assert reconciler.fire(entry_17) is None
