import streamlit as st

from todo_app.backends import create_backend
from todo_app.config import TodoConfig, get_config
from todo_app.handle import BackendHandle
from todo_app.logging_setup import setup_logging
from todo_app.sessions import SessionRegistry, track_session
from todo_app.store import TodoStore
from todo_app.theme import set_theme
from todo_app.views import render_page

STORE_KEY = "todo_store"


@st.cache_resource(show_spinner=False)
def get_registry() -> SessionRegistry:
    """Process-wide; outlives the sessions it tracks."""
    return SessionRegistry()


def get_store(config: TodoConfig) -> TodoStore:
    """One store (backend handle + change subscription) per browser session."""
    store = st.session_state.get(STORE_KEY)
    if store is None:
        handle = BackendHandle(lambda: create_backend(config))
        store = TodoStore(
            handle,
            sync_mode=config.sync_mode,
            realtime=config.realtime,
            max_text_length=config.max_text_length,
        )
        st.session_state[STORE_KEY] = store
    track_session(get_registry(), store)
    return store


config = get_config()
setup_logging(level=config.log_level, log_file=config.log_file)
set_theme()
render_page(get_store(config), refresh_seconds=config.refresh_seconds)
