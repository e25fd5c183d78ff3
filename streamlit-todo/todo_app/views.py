"""Streamlit rendering for the to-do page.

Widget callbacks mutate the store before the next script run renders it,
so every function here only reads a ``StoreSnapshot``.
"""
from __future__ import annotations

import html

import streamlit as st

from todo_app.models import Todo
from todo_app.store import StoreSnapshot, TodoStore

NEW_TEXT_KEY = "new_todo_text"
SEEN_VERSION_KEY = "todo_seen_version"


def _edit_key(todo_id: int) -> str:
    return f"edit-text-{todo_id}"


def _start_edit(store: TodoStore, todo: Todo) -> None:
    # drop the previous draft so the editor opens on the current text
    st.session_state.pop(_edit_key(todo.id), None)
    store.start_edit(todo)


def _submit_new(store: TodoStore) -> None:
    text = st.session_state.get(NEW_TEXT_KEY, "")
    # cleared on every submit, failed ones included
    st.session_state[NEW_TEXT_KEY] = ""
    store.add(text)


def _save_edit(store: TodoStore, todo_id: int) -> None:
    store.update_text(todo_id, st.session_state.get(_edit_key(todo_id), ""))


def render_header() -> None:
    st.markdown('<div class="todo-title">To-Do List</div>', unsafe_allow_html=True)


def render_add_form(store: TodoStore, snap: StoreSnapshot) -> None:
    with st.form("add-todo", border=False):
        c1, c2 = st.columns([0.75, 0.25])
        with c1:
            st.text_input(
                "Todo text",
                key=NEW_TEXT_KEY,
                placeholder="Add a new task...",
                max_chars=store.max_text_length,
                disabled=snap.adding,
                label_visibility="collapsed",
            )
        with c2:
            st.form_submit_button(
                "Adding..." if snap.adding else "Add",
                disabled=snap.adding,
                use_container_width=True,
                on_click=_submit_new,
                args=(store,),
            )


def render_error(snap: StoreSnapshot) -> None:
    if snap.error:
        st.markdown(f'<div class="todo-error">{html.escape(snap.error)}</div>', unsafe_allow_html=True)


def render_loading() -> None:
    st.markdown('<div class="todo-loading">Loading...</div>', unsafe_allow_html=True)


def render_edit_form(store: TodoStore, todo: Todo, snap: StoreSnapshot) -> None:
    with st.form(f"edit-form-{todo.id}", border=False):
        st.text_input(
            "Edit task",
            value=snap.edit_text,
            key=_edit_key(todo.id),
            max_chars=store.max_text_length,
            label_visibility="collapsed",
        )
        s1, s2 = st.columns(2)
        with s1:
            st.form_submit_button(
                "Save", use_container_width=True, on_click=_save_edit, args=(store, todo.id)
            )
        with s2:
            st.form_submit_button("Cancel", use_container_width=True, on_click=store.cancel_edit)


def render_item(store: TodoStore, todo: Todo, snap: StoreSnapshot) -> None:
    editing = snap.editing_id == todo.id
    with st.container(border=True):
        c_done, c_body, c_actions = st.columns([0.1, 0.6, 0.3], vertical_alignment="center")
        with c_done:
            st.checkbox(
                "Toggle complete",
                value=todo.completed,
                # keyed on the server value so a remote toggle resets the widget
                key=f"done-{todo.id}-{int(todo.completed)}",
                on_change=store.toggle,
                args=(todo,),
                label_visibility="collapsed",
            )
        with c_body:
            if editing:
                render_edit_form(store, todo, snap)
            else:
                css = "todo-text completed" if todo.completed else "todo-text"
                st.markdown(f'<span class="{css}">{html.escape(todo.text)}</span>', unsafe_allow_html=True)
        with c_actions:
            if not editing:
                b1, b2 = st.columns(2)
                with b1:
                    st.button("Edit", key=f"edit-{todo.id}", on_click=_start_edit, args=(store, todo))
                with b2:
                    st.button("Delete", key=f"delete-{todo.id}", on_click=store.delete, args=(todo.id,))


def render_list(store: TodoStore, snap: StoreSnapshot) -> None:
    if not snap.todos:
        st.markdown('<div class="todo-empty">No tasks. Enjoy your day! 🎉</div>', unsafe_allow_html=True)
        return
    for todo in snap.todos:
        render_item(store, todo, snap)


def render_footer() -> None:
    st.markdown(
        '<div class="todo-footer">Built with <span class="supabase">Supabase</span> '
        'and <span class="streamlit">Streamlit</span></div>',
        unsafe_allow_html=True,
    )


def render_live_refresh(store: TodoStore, interval_seconds: float) -> None:
    """Rerun the whole page when the store changed outside this script run."""

    @st.fragment(run_every=interval_seconds)
    def _watch_store():
        if store.version != st.session_state.get(SEEN_VERSION_KEY, store.version):
            st.rerun()

    _watch_store()


def mark_rendered(snap: StoreSnapshot) -> None:
    st.session_state[SEEN_VERSION_KEY] = snap.version


def render_page(store: TodoStore, *, refresh_seconds: float) -> None:
    render_header()
    store.start()
    render_add_form(store, store.snapshot())
    snap = store.snapshot()
    render_error(snap)
    if snap.loading:
        render_loading()
    else:
        render_list(store, snap)
    render_footer()
    mark_rendered(snap)
    render_live_refresh(store, refresh_seconds)
