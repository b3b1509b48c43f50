# prm/views/settings.py
"""Settings: editable preference lists and API tokens."""
from __future__ import annotations

import streamlit as st

from prm import db_ops
from prm.config import AppConfig
from prm.preferences import PREFERENCE_LISTS, add_item, get_preference, label, remove_item
from prm.views.common import run_action, user_id


def _save(key: str, items):
    ok, _ = run_action("update preference", db_ops.set_preference, user_id(), key, items)
    if ok:
        st.rerun()


def _preference_section(prefs, key: str, title: str, defaults):
    items = get_preference(prefs, key, defaults)

    head_l, head_r = st.columns([3, 1])
    with head_l:
        st.subheader(title)
    with head_r:
        if st.button("Reset to defaults", key=f"reset_{key}", use_container_width=True):
            _save(key, list(defaults))

    if not items:
        st.caption("No items.")
    cols = st.columns(4)
    for idx, item in enumerate(items):
        with cols[idx % 4]:
            if st.button(f"{label(item)}  ✕", key=f"remove_{key}_{item}", use_container_width=True):
                _save(key, remove_item(items, item))

    with st.form(key=f"add_{key}_form", clear_on_submit=True):
        singular = title.lower()[:-1] if title.endswith("s") else title.lower()
        new_item = st.text_input(f"Add {singular}", placeholder=f"Add {singular}...")
        if st.form_submit_button("Add"):
            updated = add_item(items, new_item)
            if updated != items:
                _save(key, updated)


def render(cfg: AppConfig) -> None:
    uid = user_id()
    st.title("⚙️ Settings")
    st.caption(f"Signed in as **{uid}**")

    prefs = db_ops.get_preferences(uid)
    for key, (title, defaults) in PREFERENCE_LISTS.items():
        _preference_section(prefs, key, title, defaults)
        st.divider()

    # -------------------------------------------------------
    # API ACCESS
    # -------------------------------------------------------
    st.subheader("API access")
    st.caption("Tokens authenticate REST calls: `Authorization: Bearer <token>`.")
    c1, c2 = st.columns(2)
    with c1:
        if st.button("Generate token", type="primary", use_container_width=True):
            ok, token = run_action("issue API token", db_ops.issue_api_token, uid)
            if ok:
                st.session_state.new_api_token = token
    with c2:
        if st.button("Revoke all tokens", use_container_width=True):
            ok, n = run_action("revoke API tokens", db_ops.revoke_api_tokens, uid)
            if ok:
                st.session_state.new_api_token = None
                st.success(f"Revoked {n} token(s).")

    if st.session_state.get("new_api_token"):
        st.info("Copy this token now; it is not shown again.")
        st.code(st.session_state.new_api_token, language="text")
