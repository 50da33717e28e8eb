from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from evalmaster.config import DEFAULT_DIMENSION, NEW_DIMENSION_NAME
from evalmaster.errors import ValidationError
from evalmaster.importer import generate_id
from evalmaster.inference import roles_for_mode
from evalmaster.models import Dimension, FieldMapping, Role, Task, TaskMode, TaskRecord, now_ms

logger = logging.getLogger(__name__)

def default_dimension() -> Dimension:
    return Dimension(id=generate_id(), **DEFAULT_DIMENSION)

def new_dimension() -> Dimension:
    return Dimension(id=generate_id(), name=NEW_DIMENSION_NAME, description="", min=0.0, max=5.0, step=0.5)

def collect_warnings(mode: TaskMode, fields: Sequence[FieldMapping]) -> List[str]:
    """Non-blocking remarks about a task that is otherwise valid."""
    warnings: List[str] = []
    if mode == TaskMode.SCORING and not any(f.role == Role.TARGET for f in fields):
        warnings.append("No field is mapped to Target; records will be reviewed by context only.")
    return warnings

def validate_task(
    title: str,
    mode: TaskMode,
    fields: Sequence[FieldMapping],
    dimensions: Optional[Sequence[Dimension]],
    records: Sequence[TaskRecord],
) -> None:
    if not (title or "").strip():
        raise ValidationError("title required")

    roles = {f.role for f in fields}
    if mode == TaskMode.COMPARISON and not (Role.LEFT_ITEM in roles and Role.RIGHT_ITEM in roles):
        raise ValidationError("missing A/B mapping")

    if mode == TaskMode.SCORING:
        dims = list(dimensions or [])
        for d in dims:
            if not d.min < d.max:
                raise ValidationError(f"dimension range invalid: {d.name}")
        if not dims:
            raise ValidationError("at least one dimension required")
        for d in dims:
            if not d.step > 0:
                raise ValidationError(f"dimension step must be positive: {d.name}")

    allowed = set(roles_for_mode(mode))
    seen_keys = set()
    for f in fields:
        if f.key in seen_keys:
            raise ValidationError(f"duplicate field key: {f.key}")
        seen_keys.add(f.key)
        if f.role not in allowed:
            raise ValidationError(f"role {f.role.value} not allowed in {mode.value} mode")

    seen_ids = set()
    for r in records:
        if r.id in seen_ids:
            raise ValidationError(f"duplicate record id: {r.id}")
        seen_ids.add(r.id)

def create_task(
    title: str,
    description: str,
    mode: TaskMode,
    fields: Sequence[FieldMapping],
    records: Sequence[TaskRecord],
    dimensions: Optional[Sequence[Dimension]] = None,
) -> Task:
    """Validate the operator's choices and assemble a new task.

    Raises ``ValidationError`` without side effects. Ignored fields are dropped
    from ``fields``; record payloads are kept whole.
    """
    validate_task(title, mode, fields, dimensions, records)
    for w in collect_warnings(mode, fields):
        logger.warning("task %r: %s", title, w)

    return Task(
        id=generate_id(),
        title=title.strip(),
        description=description or "",
        mode=mode,
        created_at=now_ms(),
        fields=[FieldMapping(f.key, f.role, f.label) for f in fields if f.role != Role.IGNORE],
        records=list(records),
        dimensions=list(dimensions) if mode == TaskMode.SCORING else None,
    )
