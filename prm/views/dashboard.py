# prm/views/dashboard.py
"""
Map dashboard: people on a clustered map, with a searchable side panel.
Clicking a marker or a list entry opens that person's detail.
"""
from __future__ import annotations

import streamlit as st

from prm import db_ops
from prm.config import AppConfig
from prm.filters import search_people
from prm.map_data import build_people_map, has_location
from prm.sanitize import escape_markdown
from prm.views.common import user_id
from prm.views.people_dialogs import add_person_dialog, location_label, render_person_detail


def _selected_from_map(event) -> str | None:
    if not event:
        return None
    for p in event.get("selection", {}).get("points", []):
        pid = p.get("customdata")
        if isinstance(pid, (list, tuple)):
            pid = pid[0] if pid else None
        if pid:
            return pid
    return None


def render(cfg: AppConfig) -> None:
    uid = user_id()
    people = db_ops.list_people(uid)
    organizations = db_ops.list_organizations(uid)
    interactions = db_ops.list_interactions(uid)
    events = db_ops.list_events(uid)

    head_l, head_r = st.columns([3, 1])
    with head_l:
        st.title("🗺️ Map")
        mapped = sum(1 for p in people if has_location(p))
        st.caption(f"{mapped} of {len(people)} people have a location")
    with head_r:
        if st.button("+ Add Person", type="primary", use_container_width=True):
            add_person_dialog(organizations)

    left, right = st.columns([2.2, 1.0], gap="large")

    # -------------------------------------------------------
    # MAP
    # -------------------------------------------------------
    with left:
        fig = build_people_map(people, cfg.default_center, cfg.map_zoom, cfg.map_style)
        event = st.plotly_chart(
            fig,
            use_container_width=True,
            config={"displayModeBar": False, "scrollZoom": True},
            on_select="rerun",
            selection_mode="points",
            key="people_map",
        )
        # the chart keeps its selection across reruns; act on new clicks only
        clicked = _selected_from_map(event)
        if clicked != st.session_state.get("map_last_click"):
            st.session_state.map_last_click = clicked
            if clicked:
                st.session_state.selected_person_id = clicked

    # -------------------------------------------------------
    # SIDE PANEL
    # -------------------------------------------------------
    with right:
        by_id = {p["id"]: p for p in people}
        selected = by_id.get(st.session_state.get("selected_person_id"))

        if selected:
            if st.button("← Back to list", key="back_to_list"):
                st.session_state.selected_person_id = None
                st.rerun()
            render_person_detail(selected, interactions, events, organizations, key=f"map_{selected['id']}")
            return

        query = st.text_input("Search people", placeholder="Name, notes, email, phone…", key="map_search")
        matches = search_people(people, query)

        if not people:
            st.info("No people yet. Add someone to get started.")
        elif not matches:
            st.info("No people found.")

        for p in matches:
            with st.container(border=True):
                st.markdown(f"**{escape_markdown(p['name'])}**")
                st.caption(location_label(p))
                if st.button("View", key=f"view_{p['id']}", use_container_width=True):
                    st.session_state.selected_person_id = p["id"]
                    st.rerun()
