import logging
import os

import streamlit as st
from streamlit.errors import StreamlitAPIException

logger = logging.getLogger(__name__)

THEME_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'assets', 'todo_theme.css')


def _read_css(path: str):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except FileNotFoundError:
        logger.warning("theme file not found at %s", path)
        return None


def set_theme(
    page_title: str = "To-Do List",
    page_icon: str = "📝",
    layout: str = "centered",
    initial_sidebar_state: str = "collapsed",
):
    """Page config plus the to-do palette; called at the top of every run."""
    try:
        st.set_page_config(
            page_title=page_title,
            page_icon=page_icon,
            layout=layout,
            initial_sidebar_state=initial_sidebar_state,
        )
    except StreamlitAPIException:
        # page config already applied in this run
        pass

    css = _read_css(THEME_FILE)
    if css is None:
        st.error(f"To-do stylesheet missing: {THEME_FILE}")
        return
    st.markdown(f"<style>{css}</style>", unsafe_allow_html=True)
