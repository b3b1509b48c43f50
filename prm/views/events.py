# prm/views/events.py
"""Events: search/filter, add/edit/delete, detail with single and batch interaction logging."""
from __future__ import annotations

import streamlit as st

from prm import db_ops
from prm.config import AppConfig
from prm.dates import format_date
from prm.filters import (
    TIME_FILTERS,
    event_types,
    filter_events,
    interactions_for_event,
    is_upcoming,
    match_people_by_name,
    sort_events,
)
from prm.preferences import label, resolve_preferences
from prm.sanitize import escape_markdown
from prm.views.common import (
    SENTIMENT_STYLE,
    event_form,
    interaction_form,
    run_action,
    user_id,
)

MAX_BATCH_ROWS = 25


@st.dialog("Event", width="large")
def event_dialog(prefs, event=None):
    payload = event_form(prefs["event_types"], event=event, key=f"event_{event['id'] if event else 'new'}")
    if payload:
        uid = user_id()
        if event:
            ok, _ = run_action("update event", db_ops.update_event, event["id"], payload, uid)
        else:
            ok, _ = run_action("create event", db_ops.create_event, payload, uid)
        if ok:
            st.session_state.flash = "Event saved."
            st.rerun()


@st.dialog("Log Interaction", width="large")
def event_interaction_dialog(people, events, prefs, event_context=None, interaction=None):
    payload = interaction_form(
        people,
        events,
        prefs["interaction_types"],
        prefs["sentiments"],
        interaction=interaction,
        event_context=event_context,
        key=f"event_interaction_{interaction['id'] if interaction else 'new'}",
    )
    if payload:
        uid = user_id()
        if interaction:
            ok, _ = run_action("update interaction", db_ops.update_interaction, interaction["id"], payload, uid)
        else:
            ok, _ = run_action("create interaction", db_ops.create_interactions, payload, uid)
        if ok:
            st.session_state.flash = "Interaction saved."
            st.rerun()


def batch_payload(event, rows):
    """Turns batch-logger rows into interaction payloads; rows without a person are skipped."""
    return [
        {
            "person_id": r["person_id"],
            "event_id": event["id"],
            "type": r.get("type") or "met",
            "notes": r.get("notes") or None,
            "sentiment": r.get("sentiment") or None,
            "date": event["date"],
            "location_name": event.get("location_name"),
            "location_lat": event.get("location_lat"),
            "location_lng": event.get("location_lng"),
        }
        for r in rows
        if r.get("person_id")
    ]


def _render_batch_logger(event, people, prefs):
    """Log several people met at a past event in one go."""
    key = f"batch_rows_{event['id']}"
    if key not in st.session_state:
        st.session_state[key] = 1
    n = st.session_state[key]

    people_by_id = {p["id"]: p for p in people}
    type_options = list(prefs["interaction_types"]) or ["met"]
    sentiment_options = [""] + list(prefs["sentiments"])

    filt = st.text_input("Filter people", key=f"batch_filter_{event['id']}")
    person_ids = [p["id"] for p in match_people_by_name(people, filt)]

    with st.form(key=f"batch_form_{event['id']}"):
        rows = []
        for idx in range(n):
            c1, c2, c3, c4 = st.columns([2, 1, 1, 2])
            with c1:
                pid = st.selectbox(
                    "Person",
                    options=person_ids,
                    index=None,
                    format_func=lambda x: people_by_id[x]["name"],
                    placeholder="Select a person",
                    key=f"batch_{event['id']}_{idx}_person",
                )
            with c2:
                itype = st.selectbox(
                    "Type",
                    options=type_options,
                    index=type_options.index("met") if "met" in type_options else 0,
                    format_func=label,
                    key=f"batch_{event['id']}_{idx}_type",
                )
            with c3:
                sentiment = st.selectbox(
                    "Sentiment",
                    options=sentiment_options,
                    format_func=lambda s: label(s) if s else "None",
                    key=f"batch_{event['id']}_{idx}_sentiment",
                )
            with c4:
                notes = st.text_input("Notes", key=f"batch_{event['id']}_{idx}_notes")
            rows.append({"person_id": pid, "type": itype, "sentiment": sentiment, "notes": notes})

        submitted = st.form_submit_button("Log all", type="primary", use_container_width=True)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("+ Add Row", key=f"batch_add_{event['id']}", disabled=n >= MAX_BATCH_ROWS, use_container_width=True):
            st.session_state[key] = n + 1
            st.rerun()
    with c2:
        if st.button("− Remove Row", key=f"batch_remove_{event['id']}", disabled=n <= 1, use_container_width=True):
            st.session_state[key] = n - 1
            st.rerun()

    if submitted:
        payload = batch_payload(event, rows)
        if not payload:
            st.warning("Add at least one person.")
            return
        ok, created = run_action("create interactions", db_ops.create_interactions, payload, user_id())
        if ok:
            st.session_state[key] = 1
            st.session_state.flash = f"Logged {len(created)} interaction(s)."
            st.rerun()


def _render_event_detail(event, interactions, people, events, prefs):
    uid = user_id()
    st.markdown(f"### {escape_markdown(event['name'])}")

    meta = []
    if event.get("type"):
        meta.append(label(event["type"]))
    when = format_date(event["date"])
    if event.get("end_date"):
        when += f" – {format_date(event['end_date'])}"
    meta.append(when)
    if event.get("location_name"):
        meta.append(f"📍 {escape_markdown(event['location_name'])}")
    st.caption(" · ".join(meta))
    if event.get("description"):
        st.write(event["description"])

    c1, c2, c3 = st.columns(3)
    with c1:
        if st.button("Edit", key=f"event_edit_{event['id']}", use_container_width=True):
            event_dialog(prefs, event=event)
    with c2:
        if st.button("+ Interaction", key=f"event_add_int_{event['id']}", use_container_width=True):
            event_interaction_dialog(people, events, prefs, event_context=event)
    with c3:
        confirm_key = f"confirm_delete_event_{event['id']}"
        if st.session_state.get(confirm_key):
            if st.button("Confirm delete", key=f"{confirm_key}_yes", type="primary", use_container_width=True):
                ok, _ = run_action("delete event", db_ops.delete_event, event["id"], uid)
                st.session_state[confirm_key] = False
                if ok:
                    st.session_state.selected_event_id = None
                    st.session_state.flash = f"Deleted {event['name']}."
                    st.rerun()
        elif st.button("Delete", key=f"{confirm_key}_ask", use_container_width=True):
            st.session_state[confirm_key] = True
            st.rerun()

    linked = interactions_for_event(event["id"], interactions)
    st.markdown(f"**Interactions ({len(linked)})**")
    if not linked:
        st.caption("No interactions logged for this event.")
    for i in linked:
        person = i.get("person") or {}
        r1, r2, r3 = st.columns([4, 1, 1])
        with r1:
            parts = [f"**{escape_markdown(person.get('name', 'Unknown'))}**", label(i.get("type") or "")]
            if i.get("sentiment"):
                parts.append(f"{SENTIMENT_STYLE.get(i['sentiment'], '')} {label(i['sentiment'])}")
            st.markdown(" · ".join(parts))
            if i.get("notes"):
                st.caption(i["notes"])
        with r2:
            if st.button("Edit", key=f"int_edit_{i['id']}", use_container_width=True):
                event_interaction_dialog(people, events, prefs, interaction=i)
        with r3:
            if st.button("Delete", key=f"int_del_{i['id']}", use_container_width=True):
                ok, _ = run_action("delete interaction", db_ops.delete_interaction, i["id"], uid)
                if ok:
                    st.rerun()

    if not is_upcoming(event):
        with st.expander("Batch log interactions"):
            _render_batch_logger(event, people, prefs)


def render(cfg: AppConfig) -> None:
    uid = user_id()
    events = db_ops.list_events(uid)
    interactions = db_ops.list_interactions(uid)
    people = db_ops.list_people(uid)
    prefs = resolve_preferences(db_ops.get_preferences(uid))

    head_l, head_m, head_r = st.columns([3, 1, 1])
    with head_l:
        st.title("📅 Events")
    with head_m:
        if st.button("Log Interaction", use_container_width=True):
            event_interaction_dialog(people, events, prefs)
    with head_r:
        if st.button("+ Add Event", type="primary", use_container_width=True):
            event_dialog(prefs)

    # -------------------------------------------------------
    # FILTERS
    # -------------------------------------------------------
    c1, c2, c3 = st.columns([2.5, 1.2, 1.5])
    with c1:
        query = st.text_input("Search events", placeholder="Search events…", label_visibility="collapsed")
    with c2:
        types = [""] + event_types(events)
        type_filter = st.selectbox(
            "Type",
            options=types,
            format_func=lambda t: label(t) if t else "All types",
            label_visibility="collapsed",
        )
    with c3:
        time_filter = st.segmented_control(
            "When",
            options=list(TIME_FILTERS),
            default="all",
            format_func=label,
            label_visibility="collapsed",
        ) or "all"

    shown = sort_events(filter_events(events, query, type_filter, time_filter))

    left, right = st.columns([1.3, 1.0], gap="large")

    with left:
        if not shown:
            st.info("No events found.")
        for e in shown:
            count = len(interactions_for_event(e["id"], interactions))
            with st.container(border=True):
                badge = "🟢 Upcoming" if is_upcoming(e) else "Past"
                st.markdown(f"**{escape_markdown(e['name'])}**  ·  {badge}")
                bits = [format_date(e["date"])]
                if e.get("type"):
                    bits.append(label(e["type"]))
                if e.get("location_name"):
                    bits.append(e["location_name"])
                bits.append(f"{count} interaction(s)")
                st.caption(" · ".join(bits))
                if st.button("Open", key=f"open_event_{e['id']}", use_container_width=True):
                    st.session_state.selected_event_id = e["id"]
                    st.rerun()

    with right:
        by_id = {e["id"]: e for e in events}
        selected = by_id.get(st.session_state.get("selected_event_id"))
        if selected:
            _render_event_detail(selected, interactions, people, events, prefs)
        else:
            st.caption("Select an event to see its details.")
