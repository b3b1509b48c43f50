# prm/views/people_dialogs.py
"""Person dialogs shared by the map dashboard and the people table."""

import streamlit as st

from prm import db_ops
from prm.filters import interactions_for_person, last_interaction
from prm.dates import format_date
from prm.sanitize import escape_markdown
from prm.views.common import (
    CONTACT_FIELDS,
    person_form,
    render_interaction_history,
    run_action,
    save_person,
    user_id,
)


@st.dialog("Add Person", width="large")
def add_person_dialog(organizations):
    result = person_form(organizations=organizations, key="add_person")
    if result:
        data, org_ids, new_org = result
        ok, person = save_person(data, org_ids, new_org)
        if ok:
            st.session_state.flash = f"Added {person['name']}."
            st.rerun()


@st.dialog("Edit Person", width="large")
def edit_person_dialog(person, organizations):
    result = person_form(person=person, organizations=organizations, key=f"edit_{person['id']}")
    if result:
        data, org_ids, new_org = result
        ok, _ = save_person(data, org_ids, new_org, person_id=person["id"])
        if ok:
            st.session_state.flash = "Changes saved."
            st.rerun()


def location_label(person) -> str:
    if person.get("location_name"):
        return person["location_name"]
    lat, lng = person.get("current_location_lat"), person.get("current_location_lng")
    if lat is None or lng is None:
        return "—"
    return f"{lat:.4f}, {lng:.4f}"


def delete_person_controls(person, key: str):
    """Delete button with an inline confirm step."""
    confirm_key = f"confirm_delete_{key}"
    if st.session_state.get(confirm_key):
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Confirm delete", key=f"{confirm_key}_yes", type="primary", use_container_width=True):
                ok, _ = run_action("delete person", db_ops.delete_person, person["id"], user_id())
                st.session_state[confirm_key] = False
                if ok:
                    st.session_state.selected_person_id = None
                    st.session_state.flash = f"Deleted {person['name']}."
                    st.rerun()
        with c2:
            if st.button("Cancel", key=f"{confirm_key}_no", use_container_width=True):
                st.session_state[confirm_key] = False
                st.rerun()
    else:
        if st.button("Delete", key=f"{confirm_key}_ask", use_container_width=True):
            st.session_state[confirm_key] = True
            st.rerun()


def render_person_detail(person, interactions, events, organizations, key: str):
    st.markdown(f"### {escape_markdown(person['name'])}")
    orgs = person.get("organizations") or []
    if orgs:
        st.caption(" · ".join(
            escape_markdown(o["name"]) + (f" ({escape_markdown(o['role'])})" if o.get("role") else "")
            for o in orgs
        ))

    contact = person.get("contact_info") or {}
    for field, title in CONTACT_FIELDS:
        if contact.get(field):
            st.markdown(f"**{title}:** {escape_markdown(contact[field])}")

    st.markdown(f"**Location:** {escape_markdown(location_label(person))}")
    last = last_interaction(person["id"], interactions)
    st.markdown(f"**Last interaction:** {format_date(last['date']) if last else '—'}")
    if person.get("notes"):
        st.markdown("**Notes**")
        st.write(person["notes"])

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Edit", key=f"edit_{key}", use_container_width=True):
            edit_person_dialog(person, organizations)
    with c2:
        delete_person_controls(person, key)

    st.markdown("**Interaction history**")
    render_interaction_history(interactions_for_person(person["id"], interactions), events)
