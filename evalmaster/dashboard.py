from __future__ import annotations
from dataclasses import dataclass
from typing import List

from evalmaster.models import Task
from evalmaster.repository import EvaluationRepository
from evalmaster.session import Progress, progress_for

@dataclass
class TaskSummary:
    task: Task
    progress: Progress

def matches(task: Task, search: str) -> bool:
    term = (search or "").lower()
    return term in task.title.lower() or term in task.description.lower()

def summarize_tasks(repository: EvaluationRepository, search: str = "") -> List[TaskSummary]:
    """Tasks newest first, filtered by title/description, with completion counts."""
    tasks = sorted(repository.list_tasks(), key=lambda t: t.created_at, reverse=True)
    evaluations = repository.get_all_evaluations()
    return [
        TaskSummary(task=t, progress=progress_for(t, evaluations.get(t.id, {})))
        for t in tasks
        if matches(t, search)
    ]
