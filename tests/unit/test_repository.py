from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from evalmaster.db import MemoryKeyValueStore, SqliteKeyValueStore
from evalmaster.errors import TaskNotFound
from evalmaster.models import EvaluationResult, FieldMapping, Role, Task, TaskMode, TaskRecord
from evalmaster.repository import EvaluationRepository

TASKS = "evalmaster_tasks"
EVALS = "evalmaster_evaluations"


def _task(task_id: str = "t1", created_at: int = 1) -> Task:
    return Task(
        id=task_id,
        title=f"Task {task_id}",
        description="",
        mode=TaskMode.COMPARISON,
        created_at=created_at,
        fields=[FieldMapping("a", Role.LEFT_ITEM, "A"), FieldMapping("b", Role.RIGHT_ITEM, "B")],
        records=[TaskRecord("r1", {"a": 1, "b": 2}), TaskRecord("r2", {"a": 3, "b": {"x": None}})],
    )


def _result(task_id: str, record_id: str, selection: str = "left", updated_at: int = 10) -> EvaluationResult:
    return EvaluationResult(task_id=task_id, record_id=record_id, comparison_selection=selection,
                            comment="ok", updated_at=updated_at)


def _repo(initial: dict | None = None) -> EvaluationRepository:
    return EvaluationRepository(MemoryKeyValueStore(initial), tasks_key=TASKS, evaluations_key=EVALS)


def test_empty_store_reads_as_empty() -> None:
    repo = _repo()

    assert repo.list_tasks() == []
    assert repo.get_evaluations("t1") == {}
    assert repo.get_all_evaluations() == {}


def test_save_task_appends_and_round_trips() -> None:
    repo = _repo()
    repo.save_task(_task("t1"))
    repo.save_task(_task("t2"))

    tasks = repo.list_tasks()

    assert [t.id for t in tasks] == ["t1", "t2"]
    assert tasks[0] == _task("t1")
    assert repo.get_task("t2").title == "Task t2"


def test_get_task_raises_for_unknown_id() -> None:
    repo = _repo()
    repo.save_task(_task("t1"))

    with pytest.raises(TaskNotFound):
        repo.get_task("missing")


def test_save_evaluation_upserts_by_record_id() -> None:
    repo = _repo()
    repo.save_evaluation("t1", _result("t1", "r1", "left"))
    repo.save_evaluation("t1", _result("t1", "r2", "tie"))
    repo.save_evaluation("t1", _result("t1", "r1", "right", updated_at=20))

    evals = repo.get_evaluations("t1")

    assert set(evals) == {"r1", "r2"}
    assert evals["r1"].comparison_selection == "right"
    assert evals["r1"].updated_at == 20
    assert repo.get_evaluations("t2") == {}


def test_delete_task_removes_its_evaluations_only() -> None:
    repo = _repo()
    repo.save_task(_task("t1"))
    repo.save_task(_task("t2"))
    repo.save_evaluation("t1", _result("t1", "r1"))
    repo.save_evaluation("t2", _result("t2", "r1"))

    repo.delete_task("t1")

    assert [t.id for t in repo.list_tasks()] == ["t2"]
    assert repo.get_evaluations("t1") == {}
    assert set(repo.get_evaluations("t2")) == {"r1"}


def test_delete_unknown_task_is_harmless() -> None:
    repo = _repo()
    repo.save_task(_task("t1"))

    repo.delete_task("nope")

    assert [t.id for t in repo.list_tasks()] == ["t1"]


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        json.dumps({"not": "a list"}),
        json.dumps([{"id": "t1"}]),
        json.dumps([{**_task().to_dict(), "mode": "ranking"}]),
    ],
)
def test_corrupt_tasks_read_as_empty(raw: str, caplog: pytest.LogCaptureFixture) -> None:
    repo = _repo({TASKS: raw})

    with caplog.at_level(logging.WARNING, logger="evalmaster.repository"):
        assert repo.list_tasks() == []

    assert "failed to load tasks" in caplog.text


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "[1, 2]",
        json.dumps({"t1": {"r1": {"task_id": "t1"}}}),
        json.dumps({"t1": {"r1": {"task_id": "t1", "record_id": "r1", "comparison_selection": "maybe"}}}),
        json.dumps({"t1": ["r1"]}),
    ],
)
def test_corrupt_evaluations_read_as_empty(raw: str) -> None:
    repo = _repo({EVALS: raw})

    assert repo.get_evaluations("t1") == {}
    assert repo.get_all_evaluations() == {}


def test_corrupt_evaluations_are_replaced_on_next_save() -> None:
    repo = _repo({EVALS: "garbage"})

    repo.save_evaluation("t1", _result("t1", "r1"))

    assert set(repo.get_evaluations("t1")) == {"r1"}


def test_sqlite_store_persists_across_instances(tmp_path: Path) -> None:
    db_path = str(tmp_path / "nested" / "state.db")
    first = EvaluationRepository(SqliteKeyValueStore(db_path), tasks_key=TASKS, evaluations_key=EVALS)
    first.save_task(_task("t1"))
    first.save_evaluation("t1", _result("t1", "r2", "tie"))

    second = EvaluationRepository(SqliteKeyValueStore(db_path), tasks_key=TASKS, evaluations_key=EVALS)

    assert [t.id for t in second.list_tasks()] == ["t1"]
    assert second.list_tasks()[0].records[1].data == {"a": 3, "b": {"x": None}}
    assert second.get_evaluations("t1")["r2"].comparison_selection == "tie"


def test_sqlite_store_distinguishes_absent_from_empty(tmp_path: Path) -> None:
    store = SqliteKeyValueStore(str(tmp_path / "kv.db"))

    assert store.get("k") is None
    store.set_many({"k": ""})
    assert store.get("k") == ""
    store.set_many({"k": "1", "j": "2"})
    assert (store.get("k"), store.get("j")) == ("1", "2")
