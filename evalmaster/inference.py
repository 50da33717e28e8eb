"""Proposes a role and display label for every key of an imported record.

The proposal is a pure function of the key list and the mode; the operator
can override any of it before the task is created.
"""
from __future__ import annotations
from typing import Callable, Iterable, List, Sequence, Tuple

from evalmaster.models import FieldMapping, Role, TaskMode

CONTEXT_KEYWORDS = ("input", "prompt", "query", "question", "context")
TARGET_KEYWORDS = ("target", "response", "output", "answer")
LEFT_NAMES = ("modela", "outputa")
RIGHT_NAMES = ("modelb", "outputb")

Rule = Tuple[Callable[[str, TaskMode], bool], Role]

def _contains_any(name: str, words: Iterable[str]) -> bool:
    return any(w in name for w in words)

# Evaluated top to bottom on the lower-cased key; first match wins.
RULES: List[Rule] = [
    (lambda k, mode: _contains_any(k, CONTEXT_KEYWORDS), Role.CONTEXT),
    (lambda k, mode: mode == TaskMode.SCORING and _contains_any(k, TARGET_KEYWORDS), Role.TARGET),
    (lambda k, mode: mode == TaskMode.COMPARISON and (k in LEFT_NAMES or k.endswith("_a")), Role.LEFT_ITEM),
    (lambda k, mode: mode == TaskMode.COMPARISON and (k in RIGHT_NAMES or k.endswith("_b")), Role.RIGHT_ITEM),
]

def infer_role(key: str, mode: TaskMode) -> Role:
    k = key.lower()
    for predicate, role in RULES:
        if predicate(k, mode):
            return role
    return Role.IGNORE

def default_label(key: str) -> str:
    text = key.replace("_", " ")
    return text[:1].upper() + text[1:]

def propose_fields(keys: Sequence[str], mode: TaskMode) -> List[FieldMapping]:
    return [FieldMapping(key=k, role=infer_role(k, mode), label=default_label(k)) for k in keys]

def roles_for_mode(mode: TaskMode) -> List[Role]:
    if mode == TaskMode.SCORING:
        return [Role.IGNORE, Role.CONTEXT, Role.TARGET]
    return [Role.IGNORE, Role.CONTEXT, Role.LEFT_ITEM, Role.RIGHT_ITEM]
