from __future__ import annotations
import json
from typing import Any, List

import streamlit as st

from evalmaster.config import MODE_LABELS, ROLE_LABELS, SELECTION_LABELS
from evalmaster.errors import RecordImportError, TaskNotFound, ValidationError
from evalmaster.dashboard import summarize_tasks
from evalmaster.export import export_csv, export_filename, results_frame
from evalmaster.importer import parse_records, record_keys, sample_filename, sample_records
from evalmaster.inference import propose_fields, roles_for_mode
from evalmaster.models import Dimension, FieldMapping, Role, TaskMode
from evalmaster.session import EvaluationSession, progress_for
from evalmaster.values import number_text
from evalmaster.validator import collect_warnings, create_task, default_dimension, new_dimension
from evalmaster.ui.state import current_session, go, repository

def toast(msg: str) -> None:
    st.toast(msg)

# ----------------------------- dashboard --------------------------------

def delete_confirmation_widget(task_id: str, title: str):
    with st.container(border=True):
        st.warning(f"Delete task «{title}»? All evaluations will be lost.")
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Yes, delete", type="primary", key=f"confirm_delete_{task_id}"):
                repository().delete_task(task_id)
                st.session_state.confirm_delete_task = None
                toast(f"Task {title} deleted")
                st.rerun()
        with c2:
            if st.button("Cancel", key=f"cancel_delete_{task_id}"):
                st.session_state.confirm_delete_task = None
                st.rerun()

def dashboard_ui():
    c_title, c_new = st.columns([6, 1])
    with c_title:
        st.subheader("Evaluation tasks")
    with c_new:
        st.button("New task", type="primary", use_container_width=True,
                  on_click=lambda: (reset_wizard(), go("create")))

    search = st.text_input("Search tasks", placeholder="Search tasks...", label_visibility="collapsed")
    summaries = summarize_tasks(repository(), search)
    if not summaries:
        st.caption("No tasks yet. Create the first one.")

    for s in summaries:
        task = s.task
        with st.container(border=True):
            head_l, head_r = st.columns([0.8, 0.2])
            with head_l:
                st.markdown(f"**{task.title}** · {MODE_LABELS[task.mode]}")
                if task.description:
                    st.caption(task.description)
                st.progress(s.progress.percent / 100,
                            text=f"{s.progress.completed} / {s.progress.total} ({s.progress.percent}%)")
            with head_r:
                st.button("Evaluate", key=f"eval_{task.id}", use_container_width=True,
                          on_click=go, args=("evaluate", task.id))
                st.button("Results", key=f"results_{task.id}", use_container_width=True,
                          on_click=go, args=("results", task.id))
                if st.button("Delete", key=f"delete_{task.id}", use_container_width=True):
                    st.session_state.confirm_delete_task = task.id

            if st.session_state.get("confirm_delete_task") == task.id:
                delete_confirmation_widget(task.id, task.title)

# ----------------------------- create wizard ----------------------------

def reset_wizard() -> None:
    for k in [k for k in st.session_state.keys() if str(k).startswith("wiz_")]:
        del st.session_state[k]

def _wizard_defaults() -> None:
    st.session_state.setdefault("wiz_step", 1)
    st.session_state.setdefault("wiz_mode", TaskMode.SCORING)
    st.session_state.setdefault("wiz_records", [])
    st.session_state.setdefault("wiz_fields", [])
    st.session_state.setdefault("wiz_fields_mode", None)
    st.session_state.setdefault("wiz_dimensions", [default_dimension()])
    st.session_state.setdefault("wiz_error", None)

def _propose_if_needed() -> None:
    mode = st.session_state.wiz_mode
    if st.session_state.wiz_records and st.session_state.wiz_fields_mode != mode:
        st.session_state.wiz_fields = propose_fields(record_keys(st.session_state.wiz_records), mode)
        st.session_state.wiz_fields_mode = mode

def _step_basic_info():
    # widget state is dropped once a step is left, so values are copied to plain keys
    st.session_state.wiz_title = st.text_input(
        "Task title", value=st.session_state.get("wiz_title", ""),
        placeholder="e.g., Q3 Customer Support Chatbot Evaluation")
    st.session_state.wiz_description = st.text_area(
        "Description", value=st.session_state.get("wiz_description", ""), height=90,
        placeholder="Briefly describe the goal of this evaluation...")
    modes = list(TaskMode)
    st.session_state.wiz_mode = st.radio(
        "Evaluation mode", modes, index=modes.index(st.session_state.wiz_mode), horizontal=True,
        format_func=lambda m: MODE_LABELS[m])
    if st.session_state.wiz_mode == TaskMode.SCORING:
        st.caption("Rate single items on multiple dimensions (e.g., 1-5 for Accuracy, Tone).")
    else:
        st.caption("Compare two outputs side-by-side (A vs B) and choose the better one.")

def _step_import():
    mode = st.session_state.wiz_mode
    uploaded = st.file_uploader("Upload a JSON file containing an array of objects", type=["json"],
                                key="wiz_upload")
    if uploaded is not None and st.session_state.get("wiz_upload_id") != uploaded.file_id:
        st.session_state.wiz_upload_id = uploaded.file_id
        try:
            records = parse_records(uploaded.getvalue().decode("utf-8"))
        except (RecordImportError, UnicodeDecodeError) as e:
            st.session_state.wiz_records = []
            st.session_state.wiz_error = str(e)
        else:
            st.session_state.wiz_records = records
            st.session_state.wiz_fields_mode = None
            st.session_state.wiz_error = None

    st.download_button(
        f"Download JSON template ({MODE_LABELS[mode]})",
        data=json.dumps(sample_records(mode), ensure_ascii=False, indent=2),
        file_name=sample_filename(mode),
        mime="application/json",
    )
    if st.session_state.wiz_records:
        st.success(f"Successfully loaded {len(st.session_state.wiz_records)} records.")

def _fields_editor(mode: TaskMode) -> List[FieldMapping]:
    st.markdown("#### Map fields")
    roles = roles_for_mode(mode)
    edited: List[FieldMapping] = []
    for m in st.session_state.wiz_fields:
        c1, c2, c3 = st.columns([0.3, 0.35, 0.35])
        with c1:
            st.markdown(f"`{m.key}`")
        with c2:
            role = st.selectbox("Role", roles, index=roles.index(m.role) if m.role in roles else 0,
                                key=f"wiz_role_{mode.value}_{m.key}", format_func=lambda r: ROLE_LABELS[r],
                                label_visibility="collapsed")
        with c3:
            label = st.text_input("Label", value=m.label, key=f"wiz_label_{mode.value}_{m.key}",
                                  label_visibility="collapsed")
        edited.append(FieldMapping(key=m.key, role=role, label=label))
    st.session_state.wiz_fields = edited
    return edited

def _dimensions_editor() -> List[Dimension]:
    c_head, c_add = st.columns([5, 1])
    with c_head:
        st.markdown("#### Score dimensions")
    with c_add:
        if st.button("Add dimension"):
            st.session_state.wiz_dimensions.append(new_dimension())
            st.rerun()
    dims: List[Dimension] = []
    current = st.session_state.wiz_dimensions
    for d in current:
        with st.container(border=True):
            c1, c2, c3, c4, c5 = st.columns([0.4, 0.15, 0.15, 0.15, 0.15])
            with c1:
                name = st.text_input("Name", value=d.name, key=f"wiz_dim_name_{d.id}")
                desc = st.text_input("Description", value=d.description, key=f"wiz_dim_desc_{d.id}")
            with c2:
                lo = st.number_input("Min", value=float(d.min), key=f"wiz_dim_min_{d.id}")
            with c3:
                hi = st.number_input("Max score", value=float(d.max), key=f"wiz_dim_max_{d.id}")
            with c4:
                step = st.number_input("Step", value=float(d.step), key=f"wiz_dim_step_{d.id}")
            with c5:
                if st.button("Remove", key=f"wiz_dim_rm_{d.id}", disabled=len(current) <= 1):
                    st.session_state.wiz_dimensions = [x for x in current if x.id != d.id]
                    st.rerun()
        dims.append(Dimension(id=d.id, name=name, description=desc, min=lo, max=hi, step=step))
    st.session_state.wiz_dimensions = dims
    return dims

def _step_configure():
    mode = st.session_state.wiz_mode
    _propose_if_needed()
    fields = _fields_editor(mode)
    dims = _dimensions_editor() if mode == TaskMode.SCORING else None
    for w in collect_warnings(mode, fields):
        st.warning(w)
    return fields, dims

def add_task_ui():
    _wizard_defaults()
    step = st.session_state.wiz_step
    st.subheader("Create evaluation task")
    st.caption(f"Step {step} of 3")

    fields = dims = None
    if step == 1:
        _step_basic_info()
    elif step == 2:
        _step_import()
    else:
        fields, dims = _step_configure()

    if st.session_state.wiz_error:
        st.error(st.session_state.wiz_error)

    c_back, _, c_next = st.columns([1, 4, 1])
    with c_back:
        if step > 1:
            if st.button("Back", use_container_width=True):
                st.session_state.wiz_step -= 1
                st.session_state.wiz_error = None
                st.rerun()
        else:
            st.button("Cancel", use_container_width=True, on_click=lambda: (reset_wizard(), go("dashboard")))
    with c_next:
        if step < 3:
            if st.button("Next", type="primary", use_container_width=True):
                if step == 2 and not st.session_state.wiz_records:
                    st.session_state.wiz_error = "Please upload a file to continue."
                else:
                    st.session_state.wiz_error = None
                    st.session_state.wiz_step += 1
                st.rerun()
        elif st.button("Create task", type="primary", use_container_width=True):
            try:
                task = create_task(
                    title=st.session_state.get("wiz_title", ""),
                    description=st.session_state.get("wiz_description", ""),
                    mode=st.session_state.wiz_mode,
                    fields=fields,
                    records=st.session_state.wiz_records,
                    dimensions=dims,
                )
            except ValidationError as e:
                st.session_state.wiz_error = str(e)
                st.rerun()
            else:
                repository().save_task(task)
                reset_wizard()
                go("dashboard")
                toast(f"Task {task.title} created")
                st.rerun()

# ----------------------------- workspace --------------------------------

def show_value(label: str, value: Any):
    st.markdown(f"**{label}**")
    if isinstance(value, (dict, list)):
        st.json(value)
    elif value is None:
        st.caption("(empty)")
    else:
        st.markdown(str(value))

def _set_score(sess: EvaluationSession, dimension_id: str, key: str) -> None:
    value = st.session_state[key]
    if value is not None:
        sess.update_score(dimension_id, float(value))

def _judgment_panel(sess: EvaluationSession):
    task, draft = sess.task, sess.draft
    rid = draft.record_id
    if task.mode == TaskMode.SCORING:
        for d in task.dimensions or []:
            current = (draft.scores or {}).get(d.id)
            key = f"score_{task.id}_{rid}_{d.id}"
            # empty until the operator enters a score
            st.number_input(
                d.name, min_value=float(d.min), max_value=float(d.max), step=float(d.step),
                value=float(current) if current is not None else None,
                placeholder=f"{number_text(d.min)} to {number_text(d.max)}",
                help=d.description or None, key=key,
                on_change=_set_score, args=(sess, d.id, key),
            )
    else:
        options = list(SELECTION_LABELS)
        sel = draft.comparison_selection
        st.radio(
            "Which output is better?", options, horizontal=True,
            index=options.index(sel) if sel in options else None,
            format_func=lambda s: SELECTION_LABELS[s], key=f"sel_{task.id}_{rid}",
            on_change=lambda key=f"sel_{task.id}_{rid}": sess.update_comparison_selection(st.session_state[key]),
        )
    st.text_area(
        "Comment", value=draft.comment, key=f"comment_{task.id}_{rid}",
        on_change=lambda key=f"comment_{task.id}_{rid}": sess.update_comment(st.session_state[key]),
    )

def workspace_ui():
    sess = current_session()
    if sess is None:
        st.rerun()
        return
    task = sess.task
    record = sess.current_record

    c_back, c_title, c_state = st.columns([1, 6, 1])
    with c_back:
        st.button("Dashboard", on_click=go, args=("dashboard",))
    with c_title:
        st.markdown(f"### {task.title} · #{sess.current_index + 1} of {len(sess.records)}")
        st.progress(sess.progress.percent / 100, text=f"{sess.progress.percent}% complete")
    with c_state:
        st.markdown("Saved" if sess.is_saved else "**Unsaved**")

    if record is None:
        st.info("This task has no records.")
        return

    for f in task.fields_with_role(Role.CONTEXT):
        show_value(f.label, record.data.get(f.key))

    if task.mode == TaskMode.SCORING:
        target = task.field_for(Role.TARGET)
        if target is not None:
            show_value(target.label, record.data.get(target.key))
    else:
        c_a, c_b = st.columns(2)
        for col, role, fallback in ((c_a, Role.LEFT_ITEM, "Output A"), (c_b, Role.RIGHT_ITEM, "Output B")):
            m = task.field_for(role)
            with col:
                show_value(m.label if m else fallback, record.data.get(m.key) if m else None)

    st.divider()
    _judgment_panel(sess)

    c_prev, c_save, c_next = st.columns(3)
    with c_prev:
        st.button("Previous", on_click=sess.prev, disabled=sess.current_index == 0, use_container_width=True)
    with c_save:
        st.button("Save", on_click=sess.save, use_container_width=True)
    with c_next:
        st.button("Next", type="primary", on_click=sess.next,
                  disabled=sess.current_index >= len(sess.records) - 1, use_container_width=True)

# ----------------------------- results ----------------------------------

def results_ui():
    try:
        task = repository().get_task(st.session_state.task_id)
    except TaskNotFound:
        go("dashboard")
        st.rerun()
        return
    evaluations = repository().get_evaluations(task.id)
    progress = progress_for(task, evaluations)

    c_back, c_title, c_export = st.columns([1, 5, 1])
    with c_back:
        st.button("Dashboard", on_click=go, args=("dashboard",))
    with c_title:
        st.markdown(f"### {task.title} - Results")
        st.caption(f"Completed {len(evaluations)} of {progress.total} records")
    with c_export:
        st.download_button("Export CSV", data=export_csv(task, evaluations).encode("utf-8"),
                           file_name=export_filename(task.title), mime="text/csv")

    st.dataframe(results_frame(task, evaluations), hide_index=True, use_container_width=True)
