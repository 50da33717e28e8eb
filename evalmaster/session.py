"""Walk over a task's records with autosave on navigation.

The state lives in an immutable :class:`SessionState`; the functions below
are pure transitions over it. :class:`EvaluationSession` ties them to a
repository and the clock.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, replace
from typing import Any, Optional

from evalmaster.errors import TaskNotFound
from evalmaster.models import (
    SELECTIONS, EvaluationMap, EvaluationResult, Role, Task, TaskMode, TaskRecord, now_ms,
)
from evalmaster.repository import EvaluationRepository

@dataclass(frozen=True)
class Progress:
    completed: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        # round half up, 12.5 -> 13
        return int(math.floor(100 * self.completed / self.total + 0.5))

def progress_for(task: Task, saved_map: EvaluationMap) -> Progress:
    return Progress(completed=len(saved_map), total=len(task.records))

@dataclass(frozen=True)
class SessionState:
    task: Task
    saved_map: EvaluationMap
    current_index: int = 0
    draft: Optional[EvaluationResult] = None
    is_saved: bool = True

def fresh_draft(task: Task, record: TaskRecord, now: int) -> EvaluationResult:
    return EvaluationResult(
        task_id=task.id,
        record_id=record.id,
        scores={} if task.mode == TaskMode.SCORING else None,
        comparison_selection=None,
        comment="",
        updated_at=now,
    )

def _copy(result: EvaluationResult) -> EvaluationResult:
    return replace(result, scores=dict(result.scores) if result.scores is not None else None)

def load_index(state: SessionState, index: int, now: int) -> SessionState:
    records = state.task.records
    if not records:
        return replace(state, current_index=0, draft=None, is_saved=True)
    index = max(0, min(index, len(records) - 1))
    record = records[index]
    saved = state.saved_map.get(record.id)
    draft = _copy(saved) if saved is not None else fresh_draft(state.task, record, now)
    return replace(state, current_index=index, draft=draft, is_saved=True)

def start(task: Task, saved_map: EvaluationMap, now: int) -> SessionState:
    """Resume at the first unevaluated record, or at the first record when all are done."""
    first_open = next((i for i, r in enumerate(task.records) if r.id not in saved_map), 0)
    return load_index(SessionState(task=task, saved_map=dict(saved_map)), first_open, now)

def mutate_draft(state: SessionState, **changes: Any) -> SessionState:
    if state.draft is None:
        return state
    return replace(state, draft=replace(state.draft, **changes), is_saved=False)

def mark_saved(state: SessionState, result: EvaluationResult) -> SessionState:
    saved_map = dict(state.saved_map)
    saved_map[result.record_id] = result
    return replace(state, saved_map=saved_map, draft=_copy(result), is_saved=True)

def advance(state: SessionState, step: int, now: int) -> SessionState:
    target = state.current_index + step
    if not state.task.records or target < 0 or target > len(state.task.records) - 1:
        return state
    return load_index(state, target, now)

class EvaluationSession:
    def __init__(self, repository: EvaluationRepository, task_id: str, clock=now_ms) -> None:
        self.repository = repository
        self.clock = clock
        task = repository.get_task(task_id)   # TaskNotFound propagates to the caller
        self.state = start(task, repository.get_evaluations(task.id), self.clock())

    # ---- read access ----------------------------------------------------

    @property
    def task(self) -> Task:
        return self.state.task

    @property
    def records(self):
        return self.state.task.records

    @property
    def current_index(self) -> int:
        return self.state.current_index

    @property
    def current_record(self) -> Optional[TaskRecord]:
        if not self.records:
            return None
        return self.records[self.state.current_index]

    @property
    def draft(self) -> Optional[EvaluationResult]:
        return self.state.draft

    @property
    def saved_map(self) -> EvaluationMap:
        return self.state.saved_map

    @property
    def is_saved(self) -> bool:
        return self.state.is_saved

    @property
    def progress(self) -> Progress:
        return progress_for(self.task, self.state.saved_map)

    def field_value(self, role: Role) -> Any:
        mapping = self.task.field_for(role)
        record = self.current_record
        if mapping is None or record is None:
            return None
        return record.data.get(mapping.key)

    # ---- draft edits ----------------------------------------------------

    def update_score(self, dimension_id: str, value: float) -> None:
        if self.task.mode != TaskMode.SCORING:
            raise ValueError("scores apply to scoring tasks only")
        if not any(d.id == dimension_id for d in self.task.dimensions or []):
            raise KeyError(dimension_id)
        if self.draft is None:
            return
        scores = dict(self.draft.scores or {})
        scores[dimension_id] = value
        self.state = mutate_draft(self.state, scores=scores)

    def update_comparison_selection(self, selection: str) -> None:
        if self.task.mode != TaskMode.COMPARISON:
            raise ValueError("selection applies to comparison tasks only")
        if selection not in SELECTIONS:
            raise ValueError(f"unknown selection: {selection!r}")
        self.state = mutate_draft(self.state, comparison_selection=selection)

    def update_comment(self, text: str) -> None:
        self.state = mutate_draft(self.state, comment=text or "")

    # ---- persistence and navigation -------------------------------------

    def save(self) -> Optional[EvaluationResult]:
        if self.draft is None:
            return None
        result = replace(_copy(self.draft), updated_at=self.clock())
        self.repository.save_evaluation(self.task.id, result)
        self.state = mark_saved(self.state, result)
        return result

    def next(self) -> None:
        self.save()
        self.state = advance(self.state, 1, self.clock())

    def prev(self) -> None:
        self.save()
        self.state = advance(self.state, -1, self.clock())

    def go_to(self, index: int) -> None:
        self.save()
        self.state = load_index(self.state, index, self.clock())


def open_session(repository: EvaluationRepository, task_id: str) -> Optional[EvaluationSession]:
    """Session for ``task_id``, or ``None`` when the task no longer exists."""
    try:
        return EvaluationSession(repository, task_id)
    except TaskNotFound:
        return None
