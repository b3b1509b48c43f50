# prm/views/people.py
"""
People table: search, organization and last-interaction filters,
three-way sort, expandable interaction history.
"""
from __future__ import annotations

import streamlit as st

from prm import db_ops
from prm.config import AppConfig
from prm.dates import format_date
from prm.filters import PeopleQuery, interactions_for_person, last_interaction
from prm.preferences import resolve_preferences
from prm.sanitize import escape_markdown
from prm.views.common import interaction_form, render_interaction_history, run_action, user_id
from prm.views.people_dialogs import (
    add_person_dialog,
    delete_person_controls,
    edit_person_dialog,
    location_label,
)

SORT_LABELS = {
    "name": "Name",
    "last_interaction": "Last Interaction",
    "created_at": "Added",
}

# filter widget keys
SEARCH_KEY = "people_search"
ORGS_KEY = "people_orgs"
RANGE_KEY = "people_range"


@st.dialog("Log Interaction", width="large")
def log_interaction_dialog(people, events, prefs, event_context=None):
    payload = interaction_form(
        people,
        events,
        prefs["interaction_types"],
        prefs["sentiments"],
        event_context=event_context,
        key="log_interaction",
    )
    if payload:
        ok, _ = run_action("create interaction", db_ops.create_interactions, payload, user_id())
        if ok:
            st.session_state.flash = "Interaction logged."
            st.rerun()


def _query() -> PeopleQuery:
    if "people_query" not in st.session_state:
        st.session_state.people_query = PeopleQuery()
    return st.session_state.people_query


def _sort_button(q: PeopleQuery, field: str):
    arrow = ""
    if q.sort_field == field:
        arrow = " ▲" if q.sort_direction == "asc" else " ▼"
    if st.button(SORT_LABELS[field] + arrow, key=f"sort_{field}", use_container_width=True):
        st.session_state.people_query = q.sorted_by(field)
        st.rerun()


def _clear_filters():
    # runs before the next script run, while the filter widgets can still be reset
    st.session_state.people_query = _query().cleared()
    for key in (SEARCH_KEY, ORGS_KEY, RANGE_KEY):
        st.session_state.pop(key, None)


def _render_filters(q: PeopleQuery, organizations) -> PeopleQuery:
    org_names = {o["id"]: o["name"] for o in organizations}

    # widgets are keyed and seeded here so edits don't change their identity
    if SEARCH_KEY not in st.session_state:
        st.session_state[SEARCH_KEY] = q.search
    # drop organizations deleted since the last run
    selected = [o for o in st.session_state.get(ORGS_KEY, q.organization_ids) if o in org_names]
    if st.session_state.get(ORGS_KEY) != selected:
        st.session_state[ORGS_KEY] = selected

    c1, c2, c3, c4 = st.columns([2.2, 1.6, 1.2, 0.8])
    with c1:
        search = st.text_input(
            "Search",
            placeholder="Search by name, notes, email, phone…",
            label_visibility="collapsed",
            key=SEARCH_KEY,
        )
    with c2:
        org_ids = st.multiselect(
            "Organization",
            options=list(org_names),
            format_func=lambda oid: org_names.get(oid, oid),
            placeholder="Organization",
            label_visibility="collapsed",
            key=ORGS_KEY,
        )
    with c3:
        picked = st.date_input(
            "Last interaction between",
            value=(),
            format="YYYY-MM-DD",
            label_visibility="collapsed",
            key=RANGE_KEY,
        )

    start = end = None
    if isinstance(picked, (list, tuple)):
        if len(picked) >= 1:
            start = picked[0]
        if len(picked) == 2:
            end = picked[1]

    updated = PeopleQuery(
        search=search,
        organization_ids=tuple(org_ids),
        start=start,
        end=end,
        sort_field=q.sort_field,
        sort_direction=q.sort_direction,
    )

    with c4:
        st.button(
            "Clear",
            key="people_clear",
            disabled=not updated.has_active_filters,
            on_click=_clear_filters,
            use_container_width=True,
        )
    return updated


def render(cfg: AppConfig) -> None:
    uid = user_id()
    people = db_ops.list_people(uid)
    organizations = db_ops.list_organizations(uid)
    interactions = db_ops.list_interactions(uid)
    events = db_ops.list_events(uid)
    prefs = resolve_preferences(db_ops.get_preferences(uid))

    head_l, head_m, head_r = st.columns([3, 1, 1])
    with head_l:
        st.title("👥 People")
    with head_m:
        if st.button("Log Interaction", use_container_width=True):
            log_interaction_dialog(people, events, prefs)
    with head_r:
        if st.button("+ Add Person", type="primary", use_container_width=True):
            add_person_dialog(organizations)

    q = _render_filters(_query(), organizations)
    st.session_state.people_query = q
    rows = q.apply(people, interactions)
    st.caption(f"Showing {len(rows)} of {len(people)} people")

    if not rows:
        st.info("No people found. Try adjusting your search or filters.")
        return

    # -------------------------------------------------------
    # TABLE HEADER (sortable)
    # -------------------------------------------------------
    h = st.columns([2, 2, 1.6, 1.2, 1.2])
    with h[0]:
        _sort_button(q, "name")
    h[1].markdown("**Organizations**")
    h[2].markdown("**Location**")
    with h[3]:
        _sort_button(q, "last_interaction")
    with h[4]:
        _sort_button(q, "created_at")

    # -------------------------------------------------------
    # ROWS
    # -------------------------------------------------------
    for p in rows:
        last = last_interaction(p["id"], interactions)
        orgs = p.get("organizations") or []
        org_text = ", ".join(o["name"] for o in orgs[:2])
        if len(orgs) > 2:
            org_text += f" +{len(orgs) - 2}"

        c = st.columns([2, 2, 1.6, 1.2, 1.2])
        c[0].markdown(f"**{escape_markdown(p['name'])}**")
        c[1].write(org_text or "—")
        c[2].write(location_label(p))
        c[3].write(format_date(last["date"]) if last else "—")
        c[4].write(format_date(p.get("created_at")))

        with st.expander("Details & history"):
            contact = p.get("contact_info") or {}
            if contact.get("email"):
                st.markdown(f"✉️ {escape_markdown(contact['email'])}")
            if contact.get("phone"):
                st.markdown(f"📞 {escape_markdown(contact['phone'])}")
            if p.get("notes"):
                st.caption(p["notes"])

            a1, a2 = st.columns(2)
            with a1:
                if st.button("Edit", key=f"table_edit_{p['id']}", use_container_width=True):
                    edit_person_dialog(p, organizations)
            with a2:
                delete_person_controls(p, key=f"table_{p['id']}")

            render_interaction_history(interactions_for_person(p["id"], interactions), events)
