from __future__ import annotations

import pytest

from evalmaster.errors import ValidationError
from evalmaster.models import Dimension, FieldMapping, Role, TaskMode, TaskRecord
from evalmaster.validator import collect_warnings, create_task, default_dimension


def _records(n: int = 2) -> list[TaskRecord]:
    return [
        TaskRecord(id=str(i), data={"id": str(i), "prompt": f"p{i}", "model_a": "a", "model_b": "b", "notes": "n"})
        for i in range(n)
    ]


def _comparison_fields(right: bool = True) -> list[FieldMapping]:
    fields = [
        FieldMapping("prompt", Role.CONTEXT, "Prompt"),
        FieldMapping("model_a", Role.LEFT_ITEM, "Model a"),
        FieldMapping("notes", Role.IGNORE, "Notes"),
    ]
    if right:
        fields.append(FieldMapping("model_b", Role.RIGHT_ITEM, "Model b"))
    return fields


def _dimension(**overrides) -> Dimension:
    values = {"id": "d1", "name": "Quality", "description": "", "min": 0.0, "max": 5.0, "step": 1.0}
    values.update(overrides)
    return Dimension(**values)


def test_create_comparison_task_drops_ignored_fields_but_keeps_payload() -> None:
    records = _records(3)

    task = create_task("A/B run", "desc", TaskMode.COMPARISON, _comparison_fields(), records)

    assert task.mode == TaskMode.COMPARISON
    assert task.dimensions is None
    assert [f.key for f in task.fields] == ["prompt", "model_a", "model_b"]
    assert len(task.records) == 3
    assert len({r.id for r in task.records}) == 3
    assert task.records[0].data["notes"] == "n"
    assert task.id
    assert task.created_at > 0


@pytest.mark.parametrize("title", ["", "   ", "\n\t"])
def test_blank_title_is_rejected(title: str) -> None:
    with pytest.raises(ValidationError, match="title required"):
        create_task(title, "", TaskMode.COMPARISON, _comparison_fields(), _records())


def test_title_is_checked_before_mappings() -> None:
    with pytest.raises(ValidationError, match="title required"):
        create_task(" ", "", TaskMode.COMPARISON, _comparison_fields(right=False), _records())


def test_comparison_requires_both_sides() -> None:
    with pytest.raises(ValidationError, match="missing A/B mapping"):
        create_task("t", "", TaskMode.COMPARISON, _comparison_fields(right=False), _records())


def test_scoring_without_target_is_allowed_with_warning() -> None:
    fields = [FieldMapping("prompt", Role.CONTEXT, "Prompt")]

    task = create_task("review", "", TaskMode.SCORING, fields, _records(), [_dimension()])

    assert task.dimensions == [_dimension()]
    assert collect_warnings(TaskMode.SCORING, fields)
    assert collect_warnings(TaskMode.SCORING, fields + [FieldMapping("model_a", Role.TARGET, "A")]) == []
    assert collect_warnings(TaskMode.COMPARISON, _comparison_fields()) == []


@pytest.mark.parametrize(
    ("dimension", "message"),
    [
        (_dimension(min=5.0, max=5.0), "dimension range invalid: Quality"),
        (_dimension(min=6.0, max=5.0), "dimension range invalid: Quality"),
        (_dimension(step=0.0), "dimension step must be positive: Quality"),
        (_dimension(step=-1.0), "dimension step must be positive: Quality"),
    ],
)
def test_invalid_dimensions_are_rejected(dimension: Dimension, message: str) -> None:
    fields = [FieldMapping("prompt", Role.CONTEXT, "Prompt")]
    with pytest.raises(ValidationError, match=message):
        create_task("t", "", TaskMode.SCORING, fields, _records(), [dimension])


def test_dimension_ranges_are_checked_before_steps() -> None:
    fields = [FieldMapping("prompt", Role.CONTEXT, "Prompt")]
    dims = [_dimension(id="d1", name="Fine", step=0.0), _dimension(id="d2", name="Broken", min=5.0, max=1.0)]
    with pytest.raises(ValidationError, match="dimension range invalid: Broken"):
        create_task("t", "", TaskMode.SCORING, fields, _records(), dims)


def test_scoring_requires_a_dimension() -> None:
    with pytest.raises(ValidationError, match="at least one dimension required"):
        create_task("t", "", TaskMode.SCORING, [], _records(), [])


def test_roles_outside_the_mode_are_rejected() -> None:
    fields = _comparison_fields() + [FieldMapping("prompt2", Role.TARGET, "T")]
    with pytest.raises(ValidationError, match="role target not allowed in comparison mode"):
        create_task("t", "", TaskMode.COMPARISON, fields, _records())


def test_duplicate_field_keys_are_rejected() -> None:
    fields = _comparison_fields() + [FieldMapping("prompt", Role.IGNORE, "again")]
    with pytest.raises(ValidationError, match="duplicate field key: prompt"):
        create_task("t", "", TaskMode.COMPARISON, fields, _records())


def test_duplicate_record_ids_are_rejected() -> None:
    records = _records(1) + _records(1)
    with pytest.raises(ValidationError, match="duplicate record id: 0"):
        create_task("t", "", TaskMode.COMPARISON, _comparison_fields(), records)


def test_comparison_task_ignores_passed_dimensions() -> None:
    task = create_task("t", "", TaskMode.COMPARISON, _comparison_fields(), _records(), [_dimension()])

    assert task.dimensions is None


def test_default_dimension_values() -> None:
    d = default_dimension()

    assert d.name == "Overall Quality"
    assert (d.min, d.max, d.step) == (0.0, 5.0, 0.5)
    assert d.id
