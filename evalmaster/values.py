"""Helpers over imported JSON values.

Records keep their payload as plain JSON types: ``None``, ``bool``, ``int``,
``float``, ``str``, ``list`` and ``dict``. Everything that renders a value as
text goes through :func:`text_form` so that import ids and export cells agree.
"""
from __future__ import annotations
import json
import math
from typing import Any, Dict, List, Union

JsonValue = Union[None, bool, int, float, str, List["JsonValue"], Dict[str, "JsonValue"]]

def is_scalar(value: Any) -> bool:
    return isinstance(value, (bool, int, float, str))

def canonical_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

def number_text(value: float) -> str:
    # 4.0 -> "4", 4.5 -> "4.5"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)

def text_form(value: Any) -> str:
    """Plain-text rendering of a JSON value. ``None`` renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return number_text(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return canonical_json(value)
    return str(value)
