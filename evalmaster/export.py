"""CSV export of a task's records joined with their evaluations.

Every record gets a row, evaluated or not. Value cells are quoted with inner
quotes doubled; score cells carry the bare number, and the selection and
timestamp cells carry bare tokens.
"""
from __future__ import annotations
import re
from datetime import datetime, timezone
from typing import Any, List, Optional

import pandas as pd

from evalmaster.models import EvaluationMap, EvaluationResult, Role, Task, TaskMode
from evalmaster.values import number_text, text_form

PENDING = "Pending"

def encode_cell(value: Any) -> str:
    if value is None:
        return ""
    return '"' + text_form(value).replace('"', '""') + '"'

def iso_timestamp(ms: Optional[int]) -> str:
    if not ms:
        return ""
    dt = datetime.fromtimestamp(ms // 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{ms % 1000:03d}Z"

def export_filename(title: str) -> str:
    return re.sub(r"\s+", "_", title) + "_results.csv"

def build_header(task: Task) -> List[str]:
    header = ["RecordID"]
    header += [f"Context: {f.label}" for f in task.fields_with_role(Role.CONTEXT)]
    if task.mode == TaskMode.SCORING:
        target = task.field_for(Role.TARGET)
        header.append(f"Target: {target.label if target else 'Target'}")
        header += [f"Score: {d.name}" for d in task.dimensions or []]
    else:
        header += ["Model A", "Model B", "Selection"]
    header += ["Comments", "Timestamp"]
    return header

def _role_value(task: Task, data: dict, role: Role) -> Any:
    mapping = task.field_for(role)
    if mapping is None:
        return ""
    return data.get(mapping.key)

def _score_cell(result: Optional[EvaluationResult], dimension_id: str) -> str:
    if result is None or not result.scores:
        return ""
    value = result.scores.get(dimension_id)
    return "" if value is None else number_text(value)

def build_rows(task: Task, evaluations: EvaluationMap) -> List[List[str]]:
    context_fields = task.fields_with_role(Role.CONTEXT)
    rows: List[List[str]] = []
    for record in task.records:
        result = evaluations.get(record.id)
        row = [encode_cell(record.id)]
        row += [encode_cell(record.data.get(f.key)) for f in context_fields]

        if task.mode == TaskMode.SCORING:
            row.append(encode_cell(_role_value(task, record.data, Role.TARGET)))
            row += [_score_cell(result, d.id) for d in task.dimensions or []]
        else:
            row.append(encode_cell(_role_value(task, record.data, Role.LEFT_ITEM)))
            row.append(encode_cell(_role_value(task, record.data, Role.RIGHT_ITEM)))
            row.append((result.comparison_selection if result else None) or PENDING)

        row.append(encode_cell(result.comment if result else ""))
        row.append(iso_timestamp(result.updated_at) if result else "")
        rows.append(row)
    return rows

def export_csv(task: Task, evaluations: EvaluationMap) -> str:
    lines = [",".join(build_header(task))]
    lines += [",".join(row) for row in build_rows(task, evaluations)]
    return "\n".join(lines)

def results_frame(task: Task, evaluations: EvaluationMap) -> pd.DataFrame:
    """Per-record overview for on-screen display."""
    rows = []
    for record in task.records:
        result = evaluations.get(record.id)
        row = {"Status": "Done" if result else PENDING, "Record ID": record.id}
        if task.mode == TaskMode.SCORING:
            for d in task.dimensions or []:
                score = (result.scores or {}).get(d.id) if result else None
                row[d.name] = number_text(score) if score is not None else "-"
        else:
            row["Selection"] = (result.comparison_selection if result else None) or "-"
        row["Comments"] = (result.comment if result else "") or ""
        rows.append(row)
    return pd.DataFrame(rows)
