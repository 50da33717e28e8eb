from __future__ import annotations
from typing import Optional
import streamlit as st
from evalmaster.db import SqliteKeyValueStore
from evalmaster.repository import EvaluationRepository
from evalmaster.session import EvaluationSession, open_session
from evalmaster.settings import settings

def init_session_state() -> None:
    if "repository" not in st.session_state:
        st.session_state.repository = EvaluationRepository(SqliteKeyValueStore(settings.db_path))

    st.session_state.setdefault("view", "dashboard")
    st.session_state.setdefault("task_id", None)
    st.session_state.setdefault("confirm_delete_task", None)
    st.session_state.setdefault("eval_session", None)

def repository() -> EvaluationRepository:
    return st.session_state.repository

def go(view: str, task_id: Optional[str] = None) -> None:
    st.session_state.view = view
    st.session_state.task_id = task_id
    st.session_state.eval_session = None

def current_session() -> Optional[EvaluationSession]:
    """Session for the selected task; sends the operator home if the task is gone."""
    sess = st.session_state.get("eval_session")
    task_id = st.session_state.get("task_id")
    if sess is not None and sess.task.id == task_id:
        return sess
    sess = open_session(repository(), task_id) if task_id else None
    if sess is None:
        go("dashboard")
        return None
    st.session_state.eval_session = sess
    return sess
