from __future__ import annotations
from evalmaster.models import Role, TaskMode

DEFAULT_DIMENSION = {
    "name": "Overall Quality",
    "description": "General assessment of the output",
    "min": 0.0,
    "max": 5.0,
    "step": 0.5,
}
NEW_DIMENSION_NAME = "New Dimension"

ROLE_LABELS = {
    Role.IGNORE: "Ignore (Don't Show)",
    Role.CONTEXT: "Context (Read Only)",
    Role.TARGET: "Target (To Evaluate)",
    Role.LEFT_ITEM: "Output A (Left)",
    Role.RIGHT_ITEM: "Output B (Right)",
}

MODE_LABELS = {
    TaskMode.SCORING: "Scoring",
    TaskMode.COMPARISON: "Comparison",
}

SELECTION_LABELS = {
    "left": "A is better",
    "tie": "Tie",
    "right": "B is better",
}
