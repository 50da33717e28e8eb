from __future__ import annotations
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from evalmaster.values import JsonValue

class TaskMode(str, Enum):
    SCORING = "scoring"
    COMPARISON = "comparison"

class Role(str, Enum):
    CONTEXT = "context"
    TARGET = "target"
    LEFT_ITEM = "left_item"
    RIGHT_ITEM = "right_item"
    IGNORE = "ignore"

SELECTIONS = ("left", "right", "tie")

def now_ms() -> int:
    return int(time.time() * 1000)

@dataclass
class FieldMapping:
    key: str
    role: Role
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"key": self.key, "role": self.role.value, "label": self.label}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "FieldMapping":
        return cls(key=str(d["key"]), role=Role(d["role"]), label=str(d["label"]))

@dataclass
class Dimension:
    id: str
    name: str
    description: str = ""
    min: float = 0.0
    max: float = 5.0
    step: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id, "name": self.name, "description": self.description,
            "min": self.min, "max": self.max, "step": self.step,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Dimension":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            description=str(d.get("description", "")),
            min=float(d["min"]),
            max=float(d["max"]),
            step=float(d["step"]),
        )

@dataclass
class TaskRecord:
    id: str
    data: Dict[str, JsonValue]   # imported object, kept whole

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "data": self.data}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TaskRecord":
        data = d["data"]
        if not isinstance(data, dict):
            raise TypeError("record data must be an object")
        return cls(id=str(d["id"]), data=data)

@dataclass
class Task:
    id: str
    title: str
    description: str
    mode: TaskMode
    created_at: int          # epoch ms
    fields: List[FieldMapping]
    records: List[TaskRecord]
    dimensions: Optional[List[Dimension]] = None   # scoring only

    def fields_with_role(self, role: Role) -> List[FieldMapping]:
        return [f for f in self.fields if f.role == role]

    def field_for(self, role: Role) -> Optional[FieldMapping]:
        return next((f for f in self.fields if f.role == role), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "mode": self.mode.value,
            "created_at": self.created_at,
            "fields": [f.to_dict() for f in self.fields],
            "dimensions": [d.to_dict() for d in self.dimensions] if self.dimensions is not None else None,
            "records": [r.to_dict() for r in self.records],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Task":
        dims = d.get("dimensions")
        return cls(
            id=str(d["id"]),
            title=str(d["title"]),
            description=str(d.get("description", "")),
            mode=TaskMode(d["mode"]),
            created_at=int(d["created_at"]),
            fields=[FieldMapping.from_dict(f) for f in d["fields"]],
            records=[TaskRecord.from_dict(r) for r in d["records"]],
            dimensions=[Dimension.from_dict(x) for x in dims] if dims is not None else None,
        )

@dataclass
class EvaluationResult:
    task_id: str
    record_id: str
    scores: Optional[Dict[str, float]] = None          # dimension id -> score, scoring only
    comparison_selection: Optional[str] = None         # left|right|tie, comparison only
    comment: str = ""
    updated_at: int = 0                                 # epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "record_id": self.record_id,
            "scores": dict(self.scores) if self.scores is not None else None,
            "comparison_selection": self.comparison_selection,
            "comment": self.comment,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EvaluationResult":
        scores = d.get("scores")
        selection = d.get("comparison_selection")
        if selection is not None and selection not in SELECTIONS:
            raise ValueError(f"unknown selection: {selection!r}")
        return cls(
            task_id=str(d["task_id"]),
            record_id=str(d["record_id"]),
            scores={str(k): float(v) for k, v in scores.items()} if scores is not None else None,
            comparison_selection=selection,
            comment=str(d.get("comment") or ""),
            updated_at=int(d.get("updated_at") or 0),
        )

EvaluationMap = Dict[str, EvaluationResult]   # record id -> result
