from __future__ import annotations

from dataclasses import dataclass

import streamlit as st

from prm.settings_store import settings_store


@dataclass(frozen=True)
class SidebarState:
    view: str


NAV_ITEMS = [
    ("🗺️ Map", "dashboard"),
    ("👥 People", "people"),
    ("📅 Events", "events"),
    ("⚙️ Settings", "settings"),
]


def render_sidebar() -> SidebarState:
    views = [v for _, v in NAV_ITEMS]
    labels = [l for l, _ in NAV_ITEMS]

    # last view survives restarts via the local settings file
    saved = settings_store.get("last_view", "dashboard")
    idx = views.index(saved) if saved in views else 0

    with st.sidebar:
        st.markdown("### 🤝 PRM")
        st.caption("Personal relationship manager")

        label = st.radio("Nav", labels, index=idx, label_visibility="collapsed")
        view = dict(NAV_ITEMS)[label]
        settings_store.set("last_view", view)

        st.divider()
        st.caption(f"User: {st.session_state.user_id}")

    return SidebarState(view=view)
