# prm/db_ops.py

import secrets

from sqlalchemy.orm import joinedload, selectinload

from prm import dates
from prm.db_models import (
    ApiToken,
    Event,
    Interaction,
    Organization,
    Person,
    PersonOrganization,
    SessionLocal,
    UserPreference,
    utcnow,
)
from prm.errors import NotFoundError, ValidationError
from prm.log import get_logger
from prm.sanitize import clean_optional, clean_text

logger = get_logger("prm.db")

PERSON_FIELDS = (
    "name", "contact_info", "current_location_lat", "current_location_lng",
    "location_name", "notes",
)
ORGANIZATION_FIELDS = ("name", "website", "industry")
EVENT_FIELDS = (
    "name", "type", "date", "end_date", "location_name", "location_lat",
    "location_lng", "description",
)
INTERACTION_FIELDS = (
    "person_id", "event_id", "date", "type", "sentiment", "notes",
    "location_name", "location_lat", "location_lng",
)

# Keys a client may echo back from a fetched row; never written
READ_ONLY_FIELDS = ("id", "user_id", "created_at", "organizations", "person", "event")


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------

def parse_datetime(value, field: str = "date"):
    try:
        return dates.parse_datetime(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")


def _parse_coord(value, field: str, limit: float):
    if value is None or value == "":
        return None
    try:
        coord = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
    if not -limit <= coord <= limit:
        raise ValidationError(f"{field} out of range: {coord}")
    return coord


def _iso(dt):
    return dt.isoformat() if dt else None


def _pick(data: dict, allowed: tuple) -> dict:
    data = dict(data or {})
    for k in READ_ONLY_FIELDS:
        data.pop(k, None)
    unknown = sorted(k for k in data if k not in allowed)
    if unknown:
        raise ValidationError(f"Unknown field(s): {', '.join(unknown)}")
    return data


def _clean_contact_info(info):
    if info is None:
        return {}
    if not isinstance(info, dict):
        raise ValidationError("contact_info must be an object")
    cleaned = {}
    for k, v in info.items():
        v = clean_text(v) if isinstance(v, str) else v
        if v not in (None, ""):
            cleaned[k] = v
    return cleaned


def _normalize(values: dict) -> dict:
    """Coerces incoming field values into column types."""
    out = {}
    for k, v in values.items():
        if k in ("date", "end_date"):
            out[k] = parse_datetime(v, k)
        elif k in ("current_location_lat", "location_lat"):
            out[k] = _parse_coord(v, k, 90)
        elif k in ("current_location_lng", "location_lng"):
            out[k] = _parse_coord(v, k, 180)
        elif k == "contact_info":
            out[k] = _clean_contact_info(v)
        elif k == "name":
            out[k] = clean_text(v)
        elif k == "type":
            out[k] = clean_text(v).lower() or None
        elif k == "sentiment":
            out[k] = (clean_optional(v) or "").lower() or None
        elif k in ("person_id", "event_id"):
            out[k] = v or None
        else:
            out[k] = clean_optional(v)
    return out


def _require(values: dict, *fields):
    missing = [f for f in fields if not values.get(f)]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")


# ---------------------------------------------------------
# Serializers
# ---------------------------------------------------------

def organization_to_dict(o: Organization) -> dict:
    return {
        "id": o.id,
        "name": o.name,
        "website": o.website,
        "industry": o.industry,
        "created_at": _iso(o.created_at),
    }


def person_to_dict(p: Person, with_organizations: bool = True) -> dict:
    d = {
        "id": p.id,
        "name": p.name,
        "contact_info": dict(p.contact_info or {}),
        "current_location_lat": p.current_location_lat,
        "current_location_lng": p.current_location_lng,
        "location_name": p.location_name,
        "notes": p.notes,
        "created_at": _iso(p.created_at),
    }
    if with_organizations:
        orgs = []
        for link in p.organization_links:
            org = organization_to_dict(link.organization)
            org["role"] = link.role
            orgs.append(org)
        orgs.sort(key=lambda o: (o["name"] or "").lower())
        d["organizations"] = orgs
    return d


def event_to_dict(e: Event) -> dict:
    return {
        "id": e.id,
        "name": e.name,
        "type": e.type,
        "date": _iso(e.date),
        "end_date": _iso(e.end_date),
        "location_name": e.location_name,
        "location_lat": e.location_lat,
        "location_lng": e.location_lng,
        "description": e.description,
        "created_at": _iso(e.created_at),
    }


def interaction_to_dict(i: Interaction, with_joins: bool = True) -> dict:
    d = {
        "id": i.id,
        "person_id": i.person_id,
        "event_id": i.event_id,
        "date": _iso(i.date),
        "type": i.type,
        "sentiment": i.sentiment,
        "notes": i.notes,
        "location_name": i.location_name,
        "location_lat": i.location_lat,
        "location_lng": i.location_lng,
        "created_at": _iso(i.created_at),
    }
    if with_joins:
        d["person"] = person_to_dict(i.person, with_organizations=False) if i.person else None
        d["event"] = event_to_dict(i.event) if i.event else None
    return d


# ---------------------------------------------------------
# Ownership lookups
# ---------------------------------------------------------

def _owned(s, model, row_id, user_id: str, label: str):
    row = (
        s.query(model)
        .filter(model.id == row_id, model.user_id == user_id)
        .first()
    )
    if row is None:
        raise NotFoundError(f"{label} not found: {row_id}")
    return row


def _owned_organizations(s, organization_ids, user_id: str):
    ids = list(dict.fromkeys(organization_ids))
    if not ids:
        return []
    orgs = (
        s.query(Organization)
        .filter(Organization.id.in_(ids), Organization.user_id == user_id)
        .all()
    )
    found = {o.id for o in orgs}
    missing = [i for i in ids if i not in found]
    if missing:
        raise ValidationError(f"Unknown organization(s): {', '.join(missing)}")
    return orgs


def _link_organizations(s, person: Person, organization_ids, user_id: str, roles=None):
    roles = roles or {}
    for org in _owned_organizations(s, organization_ids, user_id):
        s.add(PersonOrganization(
            person_id=person.id,
            organization_id=org.id,
            role=clean_optional(roles.get(org.id)),
        ))


def _person_query(s, user_id: str):
    return (
        s.query(Person)
        .options(selectinload(Person.organization_links).joinedload(PersonOrganization.organization))
        .filter(Person.user_id == user_id)
    )


# ---------------------------------------------------------
# PEOPLE
# ---------------------------------------------------------

def list_people(user_id: str):
    s = SessionLocal()
    try:
        rows = _person_query(s, user_id).order_by(Person.created_at.desc()).all()
        return [person_to_dict(p) for p in rows]
    finally:
        s.close()


def get_person(person_id: str, user_id: str):
    s = SessionLocal()
    try:
        p = _person_query(s, user_id).filter(Person.id == person_id).first()
        if p is None:
            raise NotFoundError(f"Person not found: {person_id}")
        return person_to_dict(p)
    finally:
        s.close()


def create_person(data: dict, user_id: str, organization_ids=None, roles=None):
    values = _normalize(_pick(data, PERSON_FIELDS))
    _require(values, "name")

    s = SessionLocal()
    try:
        p = Person(user_id=user_id, **values)
        s.add(p)
        s.flush()
        if organization_ids:
            _link_organizations(s, p, organization_ids, user_id, roles)
        s.commit()
        logger.info("Created person %s for user %s", p.id, user_id)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return get_person(p.id, user_id)


def update_person(person_id: str, data: dict, user_id: str, organization_ids=None, roles=None):
    """
    Partial update. When organization_ids is a list the person's
    organization links are replaced wholesale.
    """
    values = _normalize(_pick(data, PERSON_FIELDS))
    if "name" in values:
        _require(values, "name")

    s = SessionLocal()
    try:
        p = _owned(s, Person, person_id, user_id, "Person")
        for k, v in values.items():
            setattr(p, k, v)

        if organization_ids is not None:
            s.query(PersonOrganization).filter(PersonOrganization.person_id == p.id).delete()
            _link_organizations(s, p, organization_ids, user_id, roles)

        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return get_person(person_id, user_id)


def delete_person(person_id: str, user_id: str):
    s = SessionLocal()
    try:
        p = _owned(s, Person, person_id, user_id, "Person")
        s.delete(p)
        s.commit()
        logger.info("Deleted person %s for user %s", person_id, user_id)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return True


# ---------------------------------------------------------
# ORGANIZATIONS
# ---------------------------------------------------------

def list_organizations(user_id: str):
    s = SessionLocal()
    try:
        rows = (
            s.query(Organization)
            .filter(Organization.user_id == user_id)
            .order_by(Organization.name.asc())
            .all()
        )
        return [organization_to_dict(o) for o in rows]
    finally:
        s.close()


def create_organization(data: dict, user_id: str):
    values = _normalize(_pick(data, ORGANIZATION_FIELDS))
    _require(values, "name")

    s = SessionLocal()
    try:
        o = Organization(user_id=user_id, **values)
        s.add(o)
        s.commit()
        return organization_to_dict(o)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def update_organization(organization_id: str, data: dict, user_id: str):
    values = _normalize(_pick(data, ORGANIZATION_FIELDS))
    if "name" in values:
        _require(values, "name")

    s = SessionLocal()
    try:
        o = _owned(s, Organization, organization_id, user_id, "Organization")
        for k, v in values.items():
            setattr(o, k, v)
        s.commit()
        return organization_to_dict(o)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def delete_organization(organization_id: str, user_id: str):
    s = SessionLocal()
    try:
        o = _owned(s, Organization, organization_id, user_id, "Organization")
        s.delete(o)
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return True


# ---------------------------------------------------------
# EVENTS
# ---------------------------------------------------------

def list_events(user_id: str):
    s = SessionLocal()
    try:
        rows = (
            s.query(Event)
            .filter(Event.user_id == user_id)
            .order_by(Event.date.desc())
            .all()
        )
        return [event_to_dict(e) for e in rows]
    finally:
        s.close()


def _check_event_range(values: dict):
    start, end = values.get("date"), values.get("end_date")
    if start and end and end < start:
        raise ValidationError("end_date is before date")


def create_event(data: dict, user_id: str):
    values = _normalize(_pick(data, EVENT_FIELDS))
    _require(values, "name", "date")
    _check_event_range(values)

    s = SessionLocal()
    try:
        e = Event(user_id=user_id, **values)
        s.add(e)
        s.commit()
        logger.info("Created event %s for user %s", e.id, user_id)
        return event_to_dict(e)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def update_event(event_id: str, data: dict, user_id: str):
    values = _normalize(_pick(data, EVENT_FIELDS))
    for f in ("name", "date"):
        if f in values:
            _require(values, f)

    s = SessionLocal()
    try:
        e = _owned(s, Event, event_id, user_id, "Event")
        for k, v in values.items():
            setattr(e, k, v)
        _check_event_range({"date": e.date, "end_date": e.end_date})
        s.commit()
        return event_to_dict(e)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def delete_event(event_id: str, user_id: str):
    """Deletes the event; its interactions are kept and detached."""
    s = SessionLocal()
    try:
        e = _owned(s, Event, event_id, user_id, "Event")
        (
            s.query(Interaction)
            .filter(Interaction.event_id == e.id)
            .update({Interaction.event_id: None}, synchronize_session=False)
        )
        s.delete(e)
        s.commit()
        logger.info("Deleted event %s for user %s", event_id, user_id)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return True


# ---------------------------------------------------------
# INTERACTIONS
# ---------------------------------------------------------

def _interaction_query(s, user_id: str):
    return (
        s.query(Interaction)
        .options(joinedload(Interaction.person), joinedload(Interaction.event))
        .filter(Interaction.user_id == user_id)
    )


def list_interactions(user_id: str):
    s = SessionLocal()
    try:
        rows = _interaction_query(s, user_id).order_by(Interaction.date.desc()).all()
        return [interaction_to_dict(i) for i in rows]
    finally:
        s.close()


def _check_interaction_refs(s, values: dict, user_id: str):
    if values.get("person_id"):
        try:
            _owned(s, Person, values["person_id"], user_id, "Person")
        except NotFoundError as e:
            raise ValidationError(str(e))
    if values.get("event_id"):
        try:
            _owned(s, Event, values["event_id"], user_id, "Event")
        except NotFoundError as e:
            raise ValidationError(str(e))


def create_interactions(payload, user_id: str):
    """
    Logs one interaction (dict) or a batch (list of dicts).
    A batch is written in a single transaction.
    """
    single = isinstance(payload, dict)
    items = [payload] if single else list(payload or [])
    if not items:
        raise ValidationError("No interactions to create")

    prepared = []
    for item in items:
        values = _normalize(_pick(item, INTERACTION_FIELDS))
        values.setdefault("type", "met")
        _require(values, "person_id", "date", "type")
        prepared.append(values)

    s = SessionLocal()
    try:
        rows = []
        for values in prepared:
            _check_interaction_refs(s, values, user_id)
            i = Interaction(user_id=user_id, **values)
            s.add(i)
            rows.append(i)
        s.commit()
        ids = [i.id for i in rows]
        logger.info("Logged %d interaction(s) for user %s", len(ids), user_id)

        created = (
            _interaction_query(s, user_id)
            .filter(Interaction.id.in_(ids))
            .all()
        )
        by_id = {i.id: interaction_to_dict(i) for i in created}
        result = [by_id[i] for i in ids]
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()

    return result[0] if single else result


def update_interaction(interaction_id: str, data: dict, user_id: str):
    values = _normalize(_pick(data, INTERACTION_FIELDS))
    for f in ("person_id", "date", "type"):
        if f in values:
            _require(values, f)

    s = SessionLocal()
    try:
        i = _owned(s, Interaction, interaction_id, user_id, "Interaction")
        _check_interaction_refs(s, values, user_id)
        for k, v in values.items():
            setattr(i, k, v)
        s.commit()
        i = _interaction_query(s, user_id).filter(Interaction.id == interaction_id).first()
        return interaction_to_dict(i)
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


def delete_interaction(interaction_id: str, user_id: str):
    s = SessionLocal()
    try:
        i = _owned(s, Interaction, interaction_id, user_id, "Interaction")
        s.delete(i)
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
    return True


# ---------------------------------------------------------
# PREFERENCES
# ---------------------------------------------------------

def get_preferences(user_id: str):
    s = SessionLocal()
    try:
        rows = (
            s.query(UserPreference)
            .filter(UserPreference.user_id == user_id)
            .order_by(UserPreference.key.asc())
            .all()
        )
        return [{"key": r.key, "value": list(r.value or [])} for r in rows]
    finally:
        s.close()


def set_preference(user_id: str, key: str, value):
    key = clean_text(key)
    if not key:
        raise ValidationError("Missing required field(s): key")
    if not isinstance(value, (list, tuple)):
        raise ValidationError("value must be a list")
    value = [clean_text(v) for v in value if clean_text(v)]

    s = SessionLocal()
    try:
        row = (
            s.query(UserPreference)
            .filter(UserPreference.user_id == user_id, UserPreference.key == key)
            .first()
        )
        if not row:
            row = UserPreference(user_id=user_id, key=key)
        row.value = value
        row.updated_at = utcnow()
        s.add(row)
        s.commit()
        return {"key": row.key, "value": list(row.value)}
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()


# ---------------------------------------------------------
# API TOKENS
# ---------------------------------------------------------

def issue_api_token(user_id: str) -> str:
    token = secrets.token_urlsafe(32)
    s = SessionLocal()
    s.add(ApiToken(token=token, user_id=user_id))
    s.commit()
    s.close()
    logger.info("Issued API token for user %s", user_id)
    return token


def resolve_api_token(token: str):
    """Returns the owning user_id, or None for unknown tokens."""
    if not token:
        return None
    s = SessionLocal()
    row = s.query(ApiToken).filter(ApiToken.token == token).first()
    s.close()
    return row.user_id if row else None


def revoke_api_tokens(user_id: str) -> int:
    s = SessionLocal()
    n = s.query(ApiToken).filter(ApiToken.user_id == user_id).delete()
    s.commit()
    s.close()
    return n
