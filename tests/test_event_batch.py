from prm.db_ops import create_event, create_interactions, create_person
from prm.views.events import batch_payload


def test_batch_payload_uses_event_date_and_location_and_skips_blank_rows():
    event = {"id": "e1", "date": "2024-05-15T09:00:00", "location_name": "Pittsburgh", "location_lat": 40.44, "location_lng": -79.99}
    rows = [
        {"person_id": "p1", "type": "", "notes": "Talked about parsers", "sentiment": "positive"},
        {"person_id": None, "type": "call"},
        {"person_id": "p2", "type": "introduction", "notes": "", "sentiment": ""},
    ]

    payload = batch_payload(event, rows)

    assert [p["person_id"] for p in payload] == ["p1", "p2"]
    assert payload[0]["type"] == "met"
    assert payload[1]["notes"] is None
    assert all(p["event_id"] == "e1" and p["date"] == event["date"] for p in payload)
    assert payload[0]["location_name"] == "Pittsburgh"


def test_batch_payload_is_accepted_by_create_interactions():
    event = create_event({"name": "PyCon", "date": "2024-05-15T09:00:00", "location_name": "Pittsburgh"}, "alice")
    ada = create_person({"name": "Ada"}, user_id="alice")
    brian = create_person({"name": "Brian"}, user_id="alice")

    created = create_interactions(
        batch_payload(event, [{"person_id": ada["id"]}, {"person_id": brian["id"], "type": "call"}]),
        "alice",
    )

    assert [i["person"]["name"] for i in created] == ["Ada", "Brian"]
    assert all(i["event"]["name"] == "PyCon" for i in created)
    assert created[1]["location_name"] == "Pittsburgh"
