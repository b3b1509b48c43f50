# prm/filters.py
"""
Search, filter and sort helpers for the people and events views.

Everything here works on the plain dicts returned by prm.db_ops and is
re-run on every Streamlit rerun; nothing is cached or mutated in place.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time

from prm.dates import EPOCH, to_datetime, utcnow_naive

SORT_FIELDS = ("name", "created_at", "last_interaction")
SORT_DIRECTIONS = ("asc", "desc")
TIME_FILTERS = ("all", "upcoming", "past")

# contact_info keys matched by the people search box
SEARCH_CONTACT_KEYS = ("email", "phone", "linkedin")


# ---------------------------------------------------------
# Interactions
# ---------------------------------------------------------

def interactions_for_person(person_id, interactions):
    return [i for i in interactions if i.get("person_id") == person_id]


def interactions_for_event(event_id, interactions):
    return [i for i in interactions if i.get("event_id") == event_id]


def last_interaction(person_id, interactions):
    """Most recent interaction for the person, or None."""
    latest = None
    latest_dt = None
    for i in interactions_for_person(person_id, interactions):
        dt = to_datetime(i.get("date"))
        if dt is None:
            continue
        if latest_dt is None or dt > latest_dt:
            latest, latest_dt = i, dt
    return latest


def last_interaction_index(interactions):
    """person_id -> datetime of their latest interaction, in one pass."""
    index = {}
    for i in interactions:
        dt = to_datetime(i.get("date"))
        pid = i.get("person_id")
        if dt is None or pid is None:
            continue
        if pid not in index or dt > index[pid]:
            index[pid] = dt
    return index


# ---------------------------------------------------------
# People
# ---------------------------------------------------------

def _contains(value, needle: str) -> bool:
    return bool(value) and needle in str(value).lower()


def search_people(people, query: str):
    """Case-insensitive substring match on name, notes, email, phone, linkedin."""
    if not query or not query.strip():
        return list(people)
    q = query.strip().lower()
    out = []
    for p in people:
        contact = p.get("contact_info") or {}
        if (
            _contains(p.get("name"), q)
            or _contains(p.get("notes"), q)
            or any(_contains(contact.get(k), q) for k in SEARCH_CONTACT_KEYS)
        ):
            out.append(p)
    return out


def match_people_by_name(people, query: str):
    """Person picker: name-only match, everyone when the query is empty."""
    if not query:
        return list(people)
    q = query.lower()
    return [p for p in people if _contains(p.get("name"), q)]


def filter_by_organizations(people, organization_ids):
    """Keeps people belonging to any of the given organizations."""
    wanted = set(organization_ids or [])
    if not wanted:
        return list(people)
    return [
        p for p in people
        if any(o.get("id") in wanted for o in (p.get("organizations") or []))
    ]


def _range_bound(value, end: bool):
    # a bare date as the upper bound covers that whole day
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            value = date.fromisoformat(value.strip())
        except ValueError:
            return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max if end else time.min)
    return to_datetime(value)


def filter_by_last_interaction(people, interactions, start=None, end=None):
    """
    Keeps people whose most recent interaction falls inside [start, end].
    With no bounds everyone is kept; with any bound people who have never
    been interacted with are dropped.
    """
    lo = _range_bound(start, end=False)
    hi = _range_bound(end, end=True)
    if lo is None and hi is None:
        return list(people)

    latest = last_interaction_index(interactions)
    out = []
    for p in people:
        dt = latest.get(p.get("id"))
        if dt is None:
            continue
        if lo is not None and dt < lo:
            continue
        if hi is not None and dt > hi:
            continue
        out.append(p)
    return out


def sort_people(people, interactions, sort_field: str = "name", direction: str = "asc"):
    """Stable sort; ties keep their incoming order in both directions."""
    if sort_field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {sort_field}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")

    if sort_field == "name":
        key = lambda p: (p.get("name") or "").lower()  # noqa: E731
    elif sort_field == "created_at":
        key = lambda p: to_datetime(p.get("created_at")) or EPOCH  # noqa: E731
    else:
        latest = last_interaction_index(interactions)
        key = lambda p: latest.get(p.get("id")) or EPOCH  # noqa: E731

    return sorted(people, key=key, reverse=(direction == "desc"))


def toggle_sort(current_field: str, current_direction: str, clicked_field: str):
    """Clicking the active column flips direction; another column starts ascending."""
    if clicked_field == current_field:
        return current_field, ("desc" if current_direction == "asc" else "asc")
    return clicked_field, "asc"


@dataclass(frozen=True)
class PeopleQuery:
    search: str = ""
    organization_ids: tuple = field(default_factory=tuple)
    start: object = None
    end: object = None
    sort_field: str = "name"
    sort_direction: str = "asc"

    @property
    def has_active_filters(self) -> bool:
        return bool(self.search or self.organization_ids or self.start or self.end)

    def cleared(self) -> "PeopleQuery":
        """Drops search and filters, keeps the sort."""
        return replace(self, search="", organization_ids=(), start=None, end=None)

    def sorted_by(self, clicked_field: str) -> "PeopleQuery":
        f, d = toggle_sort(self.sort_field, self.sort_direction, clicked_field)
        return replace(self, sort_field=f, sort_direction=d)

    def apply(self, people, interactions):
        rows = search_people(people, self.search)
        rows = filter_by_organizations(rows, self.organization_ids)
        rows = filter_by_last_interaction(rows, interactions, self.start, self.end)
        return sort_people(rows, interactions, self.sort_field, self.sort_direction)


# ---------------------------------------------------------
# Events
# ---------------------------------------------------------

def is_upcoming(event, now=None) -> bool:
    now = now or utcnow_naive()
    dt = to_datetime(event.get("date"))
    return dt is not None and dt >= now


def filter_events(events, query: str = "", event_type: str = "", time_filter: str = "all", now=None):
    if time_filter not in TIME_FILTERS:
        raise ValueError(f"Unknown time filter: {time_filter}")
    now = now or utcnow_naive()
    out = list(events)

    if query and query.strip():
        q = query.strip().lower()
        out = [
            e for e in out
            if _contains(e.get("name"), q)
            or _contains(e.get("location_name"), q)
            or _contains(e.get("description"), q)
        ]
    if event_type:
        out = [e for e in out if e.get("type") == event_type]
    if time_filter == "upcoming":
        out = [e for e in out if is_upcoming(e, now)]
    elif time_filter == "past":
        out = [e for e in out if not is_upcoming(e, now)]
    return out


def sort_events(events, now=None):
    """Upcoming events first, soonest first; then past events, most recent first."""
    now = now or utcnow_naive()
    upcoming, past = [], []
    for e in events:
        (upcoming if is_upcoming(e, now) else past).append(e)
    upcoming.sort(key=lambda e: to_datetime(e.get("date")))
    past.sort(key=lambda e: to_datetime(e.get("date")) or EPOCH, reverse=True)
    return upcoming + past


def event_types(events):
    """Distinct non-empty event types, first-seen order."""
    seen = []
    for e in events:
        t = e.get("type")
        if t and t not in seen:
            seen.append(t)
    return seen
