from datetime import date

from streamlit.testing.v1 import AppTest

from prm.db_ops import create_interactions, create_person


def _people_page():
    from prm.config import get_config
    from prm.views import people

    people.render(get_config())


def _open_people_page():
    ada = create_person({"name": "Ada"}, user_id="alice")
    brian = create_person({"name": "Brian"}, user_id="alice")
    create_interactions({"person_id": ada["id"], "date": "2024-05-20T10:00:00"}, "alice")
    create_interactions({"person_id": brian["id"], "date": "2024-01-10T10:00:00"}, "alice")

    at = AppTest.from_function(_people_page, default_timeout=10)
    at.session_state["user_id"] = "alice"
    at.run()
    assert not at.exception
    return at


def _showing(at):
    return [c.value for c in at.caption if c.value.startswith("Showing")]


def test_search_keeps_its_value_across_reruns():
    at = _open_people_page()

    at.text_input(key="people_search").input("ada").run()
    assert at.text_input(key="people_search").value == "ada"
    assert _showing(at) == ["Showing 1 of 2 people"]

    at.run()
    assert at.text_input(key="people_search").value == "ada"
    assert _showing(at) == ["Showing 1 of 2 people"]


def test_first_picked_date_is_kept_while_choosing_a_range():
    at = _open_people_page()

    at.date_input(key="people_range").set_value((date(2024, 3, 1),)).run()
    assert at.date_input(key="people_range").value == (date(2024, 3, 1),)
    assert _showing(at) == ["Showing 1 of 2 people"]

    at.run()
    assert at.date_input(key="people_range").value == (date(2024, 3, 1),)


def test_clear_resets_the_filter_widgets():
    at = _open_people_page()
    assert at.button(key="people_clear").disabled

    at.text_input(key="people_search").input("ada").run()
    assert not at.button(key="people_clear").disabled

    at.button(key="people_clear").click().run()
    assert not at.exception
    assert at.text_input(key="people_search").value == ""
    assert _showing(at) == ["Showing 2 of 2 people"]
