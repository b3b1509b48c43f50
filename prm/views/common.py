# prm/views/common.py
"""Shared widgets for the Streamlit views: action runner, forms, history list."""

from datetime import datetime, time

import streamlit as st

from prm import db_ops
from prm.dates import format_date, to_datetime, utcnow_naive
from prm.errors import PRMError
from prm.filters import match_people_by_name
from prm.log import get_logger
from prm.preferences import label
from prm.sanitize import clean_optional, clean_text, escape_markdown

logger = get_logger("prm.ui")

CONTACT_FIELDS = [
    ("email", "Email"),
    ("phone", "Phone"),
    ("linkedin", "LinkedIn"),
    ("instagram", "Instagram"),
    ("twitter", "Twitter"),
]

SENTIMENT_STYLE = {
    "positive": "🟢",
    "neutral": "⚪",
    "negative": "🔴",
}


def user_id() -> str:
    return st.session_state.user_id


def run_action(action: str, fn, *args, **kwargs):
    """
    Runs a db_ops call from a button handler. Errors are shown with
    st.error and (False, None) is returned.
    """
    try:
        return True, fn(*args, **kwargs)
    except PRMError as e:
        st.error(str(e))
    except Exception:
        logger.exception("Failed to %s", action)
        st.error(f"Failed to {action}")
    return False, None


def _date_time_inputs(prefix: str, default, key: str):
    dt = to_datetime(default) or utcnow_naive()
    c1, c2 = st.columns(2)
    with c1:
        d = st.date_input(f"{prefix} date", value=dt.date(), key=f"{key}_date")
    with c2:
        t = st.time_input(f"{prefix} time", value=dt.time().replace(second=0, microsecond=0), key=f"{key}_time")
    return datetime.combine(d, t or time.min)


def _coord_inputs(lat, lng, key: str):
    c1, c2 = st.columns(2)
    with c1:
        lat = st.number_input("Latitude", value=lat, min_value=-90.0, max_value=90.0, format="%.6f", key=f"{key}_lat")
    with c2:
        lng = st.number_input("Longitude", value=lng, min_value=-180.0, max_value=180.0, format="%.6f", key=f"{key}_lng")
    return lat, lng


# -------------------------------------------------------
# PERSON FORM (add + edit)
# -------------------------------------------------------
def person_form(person=None, organizations=(), key: str = "person"):
    """
    Renders the add/edit person form. Returns (data, organization_ids,
    new_organization_name) once submitted, else None.
    """
    person = person or {}
    contact = person.get("contact_info") or {}
    org_names = {o["id"]: o["name"] for o in organizations}
    current_orgs = [o["id"] for o in person.get("organizations") or [] if o["id"] in org_names]

    with st.form(key=f"{key}_form"):
        name = st.text_input("Name *", value=person.get("name", ""))

        contact_values = {}
        cols = st.columns(2)
        for idx, (field, title) in enumerate(CONTACT_FIELDS):
            with cols[idx % 2]:
                contact_values[field] = st.text_input(title, value=contact.get(field, ""), key=f"{key}_{field}")

        selected_orgs = st.multiselect(
            "Organizations",
            options=list(org_names),
            default=current_orgs,
            format_func=lambda oid: org_names.get(oid, oid),
        )
        new_org = st.text_input("New organization", placeholder="Create and link an organization")

        location_name = st.text_input("Location", value=person.get("location_name") or "")
        lat, lng = _coord_inputs(
            person.get("current_location_lat"),
            person.get("current_location_lng"),
            key,
        )
        notes = st.text_area("Notes", value=person.get("notes") or "", height=100)

        submitted = st.form_submit_button("Save", type="primary", use_container_width=True)

    if not submitted:
        return None
    if not clean_text(name):
        st.warning("Name is required.")
        return None

    # keep unknown contact keys the form doesn't edit
    merged_contact = {k: v for k, v in contact.items() if k not in contact_values}
    merged_contact.update({k: v for k, v in contact_values.items() if clean_text(v)})

    data = {
        "name": name,
        "contact_info": merged_contact,
        "location_name": location_name,
        "current_location_lat": lat,
        "current_location_lng": lng,
        "notes": notes,
    }
    return data, selected_orgs, clean_optional(new_org)


def save_person(data, organization_ids, new_org_name, person_id=None):
    """Creates the inline organization if one was typed, then saves the person."""
    uid = user_id()
    if new_org_name:
        ok, org = run_action("create organization", db_ops.create_organization, {"name": new_org_name}, uid)
        if not ok:
            return False, None
        organization_ids = list(organization_ids) + [org["id"]]

    if person_id:
        return run_action("update person", db_ops.update_person, person_id, data, uid, organization_ids=organization_ids)
    return run_action("create person", db_ops.create_person, data, uid, organization_ids=organization_ids)


# -------------------------------------------------------
# INTERACTION FORM (add + edit)
# -------------------------------------------------------
def interaction_form(people, events, interaction_types, sentiments,
                     interaction=None, event_context=None, key: str = "interaction"):
    """
    Returns the interaction payload once submitted, else None. An event
    context pre-fills event, date and location.
    """
    interaction = interaction or {}
    ctx = event_context or {}

    search = st.text_input("Find person", key=f"{key}_search")
    candidates = match_people_by_name(people, search)
    people_by_id = {p["id"]: p for p in people}
    person_ids = [p["id"] for p in candidates]
    current_pid = interaction.get("person_id")
    if current_pid and current_pid not in person_ids and current_pid in people_by_id:
        person_ids.insert(0, current_pid)

    event_names = {e["id"]: e["name"] for e in events}
    type_options = list(interaction_types)
    if interaction.get("type") and interaction["type"] not in type_options:
        type_options.append(interaction["type"])
    sentiment_options = [""] + list(sentiments)
    if interaction.get("sentiment") and interaction["sentiment"] not in sentiment_options:
        sentiment_options.append(interaction["sentiment"])

    with st.form(key=f"{key}_form"):
        person_id = st.selectbox(
            "Person *",
            options=person_ids,
            index=person_ids.index(current_pid) if current_pid in person_ids else None,
            format_func=lambda pid: people_by_id[pid]["name"],
            placeholder="Select a person",
        )
        event_default = interaction.get("event_id") or ctx.get("id")
        event_ids = [""] + list(event_names)
        event_id = st.selectbox(
            "Event",
            options=event_ids,
            index=event_ids.index(event_default) if event_default in event_ids else 0,
            format_func=lambda eid: event_names.get(eid, "None"),
        )
        itype = st.selectbox(
            "Type",
            options=type_options,
            index=type_options.index(interaction.get("type", "met")) if interaction.get("type", "met") in type_options else 0,
            format_func=label,
        )
        sentiment = st.selectbox(
            "Sentiment",
            options=sentiment_options,
            index=sentiment_options.index(interaction.get("sentiment") or ""),
            format_func=lambda s: label(s) if s else "None",
        )
        when = _date_time_inputs("Interaction", interaction.get("date") or ctx.get("date"), key)
        location_name = st.text_input(
            "Location",
            value=interaction.get("location_name") or ctx.get("location_name") or "",
        )
        lat, lng = _coord_inputs(
            interaction.get("location_lat", ctx.get("location_lat")),
            interaction.get("location_lng", ctx.get("location_lng")),
            key,
        )
        notes = st.text_area("Notes", value=interaction.get("notes") or "", height=100)

        submitted = st.form_submit_button("Save", type="primary", use_container_width=True)

    if not submitted:
        return None
    if not person_id:
        st.warning("Please select a person.")
        return None

    return {
        "person_id": person_id,
        "event_id": event_id or None,
        "type": itype or "met",
        "sentiment": sentiment or None,
        "date": when.isoformat(),
        "location_name": location_name,
        "location_lat": lat,
        "location_lng": lng,
        "notes": notes,
    }


# -------------------------------------------------------
# EVENT FORM (add + edit)
# -------------------------------------------------------
def event_form(event_types, event=None, key: str = "event"):
    event = event or {}
    type_options = [""] + list(event_types)
    if event.get("type") and event["type"] not in type_options:
        type_options.append(event["type"])

    with st.form(key=f"{key}_form"):
        name = st.text_input("Name *", value=event.get("name", ""))
        etype = st.selectbox(
            "Type",
            options=type_options,
            index=type_options.index(event.get("type") or ""),
            format_func=lambda t: label(t) if t else "None",
        )
        start = _date_time_inputs("Start", event.get("date"), f"{key}_start")
        has_end = st.checkbox("Has end date", value=bool(event.get("end_date")))
        end = _date_time_inputs("End", event.get("end_date") or event.get("date"), f"{key}_end")
        location_name = st.text_input("Location", value=event.get("location_name") or "")
        lat, lng = _coord_inputs(event.get("location_lat"), event.get("location_lng"), key)
        description = st.text_area("Description", value=event.get("description") or "", height=100)

        submitted = st.form_submit_button("Save", type="primary", use_container_width=True)

    if not submitted:
        return None
    if not clean_text(name):
        st.warning("Name is required.")
        return None

    return {
        "name": name,
        "type": etype or None,
        "date": start.isoformat(),
        "end_date": end.isoformat() if has_end else None,
        "location_name": location_name,
        "location_lat": lat,
        "location_lng": lng,
        "description": description,
    }


# -------------------------------------------------------
# INTERACTION HISTORY
# -------------------------------------------------------
def render_interaction_history(interactions, events, show_person: bool = False):
    if not interactions:
        st.caption("No interactions yet.")
        return

    event_names = {e["id"]: e["name"] for e in events}
    ordered = sorted(interactions, key=lambda i: to_datetime(i.get("date")) or datetime.min, reverse=True)

    for i in ordered:
        parts = [f"**{format_date(i.get('date'))}**", label(i.get("type") or "")]
        if show_person and i.get("person"):
            parts.append(escape_markdown(i["person"].get("name")))
        if i.get("sentiment"):
            parts.append(f"{SENTIMENT_STYLE.get(i['sentiment'], '')} {label(i['sentiment'])}")
        if i.get("event_id") and i["event_id"] in event_names:
            parts.append(f"@ {escape_markdown(event_names[i['event_id']])}")
        if i.get("location_name"):
            parts.append(f"📍 {escape_markdown(i['location_name'])}")
        st.markdown(" · ".join(p for p in parts if p))
        if i.get("notes"):
            st.caption(i["notes"])
