from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from evalmaster.db import KeyValueStore
from evalmaster.errors import StorageDecodeError, TaskNotFound
from evalmaster.models import EvaluationMap, EvaluationResult, Task
from evalmaster.settings import settings

logger = logging.getLogger(__name__)

def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False)

class EvaluationRepository:
    """Tasks and their evaluations, stored as two whole JSON collections.

    Reads never raise: a missing or unreadable collection is logged and read
    as empty. Every write re-encodes the affected collection in full.
    """

    def __init__(self, store: KeyValueStore, tasks_key: Optional[str] = None,
                 evaluations_key: Optional[str] = None) -> None:
        self.store = store
        self.tasks_key = tasks_key or settings.tasks_key
        self.evaluations_key = evaluations_key or settings.evaluations_key

    # ---- decoding -------------------------------------------------------

    def _load(self, key: str, expected: type) -> Any:
        raw = self.store.get(key)
        if raw is None:
            return expected()
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise StorageDecodeError(f"{key}: {e}") from e
        if not isinstance(data, expected):
            raise StorageDecodeError(f"{key}: expected {expected.__name__}, got {type(data).__name__}")
        return data

    def _decode_tasks(self) -> List[Task]:
        raw = self._load(self.tasks_key, list)
        try:
            return [Task.from_dict(t) for t in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageDecodeError(f"{self.tasks_key}: {e}") from e

    def _decode_all_evaluations(self) -> Dict[str, EvaluationMap]:
        raw = self._load(self.evaluations_key, dict)
        try:
            return {
                task_id: {rid: EvaluationResult.from_dict(r) for rid, r in evals.items()}
                for task_id, evals in raw.items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageDecodeError(f"{self.evaluations_key}: {e}") from e

    # ---- tasks ----------------------------------------------------------

    def list_tasks(self) -> List[Task]:
        try:
            return self._decode_tasks()
        except StorageDecodeError as e:
            logger.warning("failed to load tasks, treating as empty: %s", e)
            return []

    def get_task(self, task_id: str) -> Task:
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        raise TaskNotFound(task_id)

    def save_task(self, task: Task) -> None:
        tasks = self.list_tasks()
        tasks.append(task)
        self.store.set_many({self.tasks_key: _dumps([t.to_dict() for t in tasks])})
        logger.info("task %s saved (%s, %d records)", task.id, task.mode.value, len(task.records))

    def delete_task(self, task_id: str) -> None:
        tasks = [t for t in self.list_tasks() if t.id != task_id]
        evaluations = self.get_all_evaluations()
        evaluations.pop(task_id, None)
        self.store.set_many({
            self.tasks_key: _dumps([t.to_dict() for t in tasks]),
            self.evaluations_key: _dumps(self._encode_all(evaluations)),
        })
        logger.info("task %s deleted with its evaluations", task_id)

    # ---- evaluations ----------------------------------------------------

    def get_all_evaluations(self) -> Dict[str, EvaluationMap]:
        try:
            return self._decode_all_evaluations()
        except StorageDecodeError as e:
            logger.warning("failed to load evaluations, treating as empty: %s", e)
            return {}

    def get_evaluations(self, task_id: str) -> EvaluationMap:
        return self.get_all_evaluations().get(task_id, {})

    def save_evaluation(self, task_id: str, result: EvaluationResult) -> None:
        evaluations = self.get_all_evaluations()
        evaluations.setdefault(task_id, {})[result.record_id] = result
        self.store.set_many({self.evaluations_key: _dumps(self._encode_all(evaluations))})

    @staticmethod
    def _encode_all(evaluations: Dict[str, EvaluationMap]) -> Dict[str, Dict[str, Any]]:
        return {
            task_id: {rid: r.to_dict() for rid, r in evals.items()}
            for task_id, evals in evaluations.items()
        }
