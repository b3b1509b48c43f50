import pytest

from prm.db_ops import (
    create_event,
    create_interactions,
    create_organization,
    create_person,
    delete_event,
    delete_organization,
    delete_person,
    get_preferences,
    issue_api_token,
    list_events,
    list_interactions,
    list_organizations,
    list_people,
    parse_datetime,
    resolve_api_token,
    revoke_api_tokens,
    set_preference,
    update_event,
    update_interaction,
    update_person,
)
from prm.errors import NotFoundError, ValidationError


def test_parse_datetime_normalizes_to_naive_utc():
    dt = parse_datetime("2024-03-01T12:30:00Z")
    assert dt.tzinfo is None
    assert (dt.hour, dt.minute) == (12, 30)

    shifted = parse_datetime("2024-03-01T12:30:00+02:00")
    assert shifted.hour == 10


def test_parse_datetime_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_datetime("next tuesday")


def test_create_person_links_organizations_with_roles():
    acme = create_organization({"name": "Acme", "industry": "Rockets"}, user_id="alice")
    person = create_person(
        {"name": "Ada", "contact_info": {"email": "ada@example.com", "phone": ""}},
        user_id="alice",
        organization_ids=[acme["id"]],
        roles={acme["id"]: "CTO"},
    )

    assert person["name"] == "Ada"
    # blank contact values are dropped
    assert person["contact_info"] == {"email": "ada@example.com"}
    assert [(o["name"], o["role"]) for o in person["organizations"]] == [("Acme", "CTO")]


def test_create_person_requires_name():
    with pytest.raises(ValidationError):
        create_person({"name": "   "}, user_id="alice")


def test_create_person_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        create_person({"name": "Ada", "favourite_colour": "blue"}, user_id="alice")


def test_create_person_rejects_other_users_organization():
    bobs = create_organization({"name": "Bob Co"}, user_id="bob")
    with pytest.raises(ValidationError):
        create_person({"name": "Ada"}, user_id="alice", organization_ids=[bobs["id"]])
    assert list_people("alice") == []


def test_coordinates_are_range_checked():
    with pytest.raises(ValidationError):
        create_person({"name": "Ada", "current_location_lat": 123}, user_id="alice")


def test_people_are_scoped_to_their_owner():
    create_person({"name": "Ada"}, user_id="alice")
    create_person({"name": "Brian"}, user_id="bob")

    assert [p["name"] for p in list_people("alice")] == ["Ada"]
    assert [p["name"] for p in list_people("bob")] == ["Brian"]


def test_update_person_replaces_organization_links():
    a = create_organization({"name": "A"}, user_id="alice")
    b = create_organization({"name": "B"}, user_id="alice")
    person = create_person({"name": "Ada"}, user_id="alice", organization_ids=[a["id"]])

    updated = update_person(person["id"], {"notes": "met at PyCon"}, "alice", organization_ids=[b["id"]])

    assert updated["notes"] == "met at PyCon"
    assert [o["name"] for o in updated["organizations"]] == ["B"]


def test_update_person_without_org_ids_keeps_links():
    a = create_organization({"name": "A"}, user_id="alice")
    person = create_person({"name": "Ada"}, user_id="alice", organization_ids=[a["id"]])

    updated = update_person(person["id"], {"name": "Ada L."}, "alice")

    assert updated["name"] == "Ada L."
    assert [o["name"] for o in updated["organizations"]] == ["A"]


def test_update_person_owned_by_someone_else_is_not_found():
    person = create_person({"name": "Ada"}, user_id="alice")
    with pytest.raises(NotFoundError):
        update_person(person["id"], {"name": "Hijacked"}, "mallory")


def test_delete_person_removes_their_interactions():
    person = create_person({"name": "Ada"}, user_id="alice")
    create_interactions({"person_id": person["id"], "date": "2024-01-01T10:00:00"}, "alice")

    delete_person(person["id"], "alice")

    assert list_people("alice") == []
    assert list_interactions("alice") == []


def test_delete_person_twice_is_not_found():
    person = create_person({"name": "Ada"}, user_id="alice")
    delete_person(person["id"], "alice")
    with pytest.raises(NotFoundError):
        delete_person(person["id"], "alice")


def test_delete_organization_unlinks_people():
    org = create_organization({"name": "Acme"}, user_id="alice")
    create_person({"name": "Ada"}, user_id="alice", organization_ids=[org["id"]])

    delete_organization(org["id"], "alice")

    assert list_organizations("alice") == []
    assert list_people("alice")[0]["organizations"] == []


def test_organizations_sorted_by_name():
    for name in ("Zeta", "alpha", "Beta"):
        create_organization({"name": name}, user_id="alice")
    assert [o["name"] for o in list_organizations("alice")] == ["Beta", "Zeta", "alpha"]


def test_events_listed_newest_first():
    create_event({"name": "Old", "date": "2023-01-01"}, "alice")
    create_event({"name": "New", "date": "2024-06-01T18:00:00Z"}, "alice")
    assert [e["name"] for e in list_events("alice")] == ["New", "Old"]


def test_event_end_date_must_follow_start():
    with pytest.raises(ValidationError):
        create_event({"name": "Backwards", "date": "2024-06-02", "end_date": "2024-06-01"}, "alice")


def test_update_event_partial():
    e = create_event({"name": "Meetup", "date": "2024-06-01", "type": "Meetup"}, "alice")
    assert e["type"] == "meetup"

    updated = update_event(e["id"], {"location_name": "Berlin"}, "alice")
    assert updated["location_name"] == "Berlin"
    assert updated["name"] == "Meetup"


def test_delete_event_detaches_interactions():
    person = create_person({"name": "Ada"}, user_id="alice")
    event = create_event({"name": "PyCon", "date": "2024-05-15"}, "alice")
    create_interactions({"person_id": person["id"], "event_id": event["id"], "date": "2024-05-15"}, "alice")

    delete_event(event["id"], "alice")

    [interaction] = list_interactions("alice")
    assert interaction["event_id"] is None
    assert interaction["event"] is None


def test_create_interaction_joins_person_and_event():
    person = create_person({"name": "Ada"}, user_id="alice")
    event = create_event({"name": "PyCon", "date": "2024-05-15"}, "alice")

    created = create_interactions(
        {"person_id": person["id"], "event_id": event["id"], "date": "2024-05-15T09:00:00", "sentiment": "Positive"},
        "alice",
    )

    assert created["type"] == "met"
    assert created["sentiment"] == "positive"
    assert created["person"]["name"] == "Ada"
    assert created["event"]["name"] == "PyCon"


def test_batch_interactions_return_list_in_order():
    a = create_person({"name": "Ada"}, user_id="alice")
    b = create_person({"name": "Brian"}, user_id="alice")

    created = create_interactions(
        [
            {"person_id": a["id"], "date": "2024-05-15", "type": "met"},
            {"person_id": b["id"], "date": "2024-05-15", "type": "call"},
        ],
        "alice",
    )

    assert [i["person"]["name"] for i in created] == ["Ada", "Brian"]
    assert [i["type"] for i in created] == ["met", "call"]


def test_batch_interactions_are_all_or_nothing():
    mine = create_person({"name": "Ada"}, user_id="alice")
    theirs = create_person({"name": "Brian"}, user_id="bob")

    with pytest.raises(ValidationError):
        create_interactions(
            [
                {"person_id": mine["id"], "date": "2024-05-15"},
                {"person_id": theirs["id"], "date": "2024-05-15"},
            ],
            "alice",
        )

    assert list_interactions("alice") == []


def test_interactions_listed_newest_first():
    p = create_person({"name": "Ada"}, user_id="alice")
    create_interactions({"person_id": p["id"], "date": "2024-01-01"}, "alice")
    create_interactions({"person_id": p["id"], "date": "2024-03-01"}, "alice")

    assert [i["date"][:10] for i in list_interactions("alice")] == ["2024-03-01", "2024-01-01"]


def test_update_interaction():
    p = create_person({"name": "Ada"}, user_id="alice")
    i = create_interactions({"person_id": p["id"], "date": "2024-01-01"}, "alice")

    updated = update_interaction(i["id"], {"notes": "Talked about Rust", "type": "call"}, "alice")

    assert updated["notes"] == "Talked about Rust"
    assert updated["type"] == "call"


def test_set_preference_upserts():
    set_preference("alice", "sentiments", ["good", "bad"])
    set_preference("alice", "sentiments", ["good", "meh", "bad"])
    set_preference("bob", "sentiments", ["fine"])

    assert get_preferences("alice") == [{"key": "sentiments", "value": ["good", "meh", "bad"]}]


def test_set_preference_requires_list():
    with pytest.raises(ValidationError):
        set_preference("alice", "sentiments", "good")


def test_api_tokens_round_trip_and_revoke():
    token = issue_api_token("alice")
    assert resolve_api_token(token) == "alice"
    assert resolve_api_token("not-a-token") is None

    assert revoke_api_tokens("alice") == 1
    assert resolve_api_token(token) is None
