from __future__ import annotations
import streamlit as st
from evalmaster.logging_setup import configure_logging
from evalmaster.settings import settings
from evalmaster.ui.state import init_session_state
from evalmaster.ui.sections import add_task_ui, dashboard_ui, results_ui, workspace_ui

configure_logging()
st.set_page_config(page_title=settings.app_title, layout="wide")
st.title(settings.app_title)

init_session_state()

VIEWS = {
    "dashboard": dashboard_ui,
    "create": add_task_ui,
    "evaluate": workspace_ui,
    "results": results_ui,
}
VIEWS.get(st.session_state.view, dashboard_ui)()
