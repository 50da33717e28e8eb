from __future__ import annotations
import json
import logging
import uuid
from typing import Any, Dict, List

from evalmaster.errors import RecordImportError
from evalmaster.models import TaskMode, TaskRecord
from evalmaster.values import is_scalar, text_form

logger = logging.getLogger(__name__)

def generate_id() -> str:
    return uuid.uuid4().hex[:9]

def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant: {name}")

def _fresh_id(taken: set) -> str:
    new_id = generate_id()
    while new_id in taken:
        new_id = generate_id()
    return new_id

def _record_id(item: Dict[str, Any], pos: int, taken: set) -> str:
    raw = item.get("id")
    if raw is None or not is_scalar(raw):
        return _fresh_id(taken)
    rid = text_form(raw)
    if rid in taken:
        new_id = _fresh_id(taken)
        logger.warning("duplicate record id %s at element %d, assigned %s", rid, pos, new_id)
        return new_id
    return rid

def parse_records(text: str) -> List[TaskRecord]:
    """Turn the text of an uploaded JSON file into task records, in file order.

    The first record with a given id keeps it; later ones get a fresh id.
    """
    try:
        payload = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, TypeError) as e:
        raise RecordImportError("Invalid JSON file. Please ensure it is a valid JSON array.") from e
    if not isinstance(payload, list):
        raise RecordImportError("Uploaded file must be a JSON array of objects.")

    records: List[TaskRecord] = []
    taken: set = set()
    for pos, item in enumerate(payload):
        if not isinstance(item, dict):
            raise RecordImportError(f"Element {pos} is not a JSON object.")
        rid = _record_id(item, pos, taken)
        taken.add(rid)
        records.append(TaskRecord(id=rid, data=item))
    logger.info("imported %d records", len(records))
    return records

def record_keys(records: List[TaskRecord]) -> List[str]:
    if not records:
        return []
    return list(records[0].data.keys())

def sample_records(mode: TaskMode) -> List[Dict[str, Any]]:
    if mode == TaskMode.COMPARISON:
        return [
            {
                "id": "101",
                "prompt": "Explain quantum computing",
                "model_a": {
                    "thought": "I should explain concepts simply.",
                    "response": "Quantum computing uses qubits...",
                },
                "model_b": "Quantum computers are fast...",
            },
            {
                "id": "102",
                "prompt": "Write a haiku",
                "model_a": "Green frog jumps quickly...",
                "model_b": {"text": "Old pond / frog jumps in...", "syllables": [2, 3, 2]},
            },
        ]
    return [
        {
            "id": "1",
            "prompt": "Translate 'Hello' to Spanish",
            "response": {"translation": "Hola", "confidence": 0.99},
        },
        {"id": "2", "prompt": "Write a summary", "response": "This is a summary of the text."},
    ]

def sample_filename(mode: TaskMode) -> str:
    return f"template_{mode.value}.json"
