import pytest

from adamas_calc.backend_logic import Semester, Subject
from adamas_calc.records import (
    HistoryEntry,
    RecordStore,
    SemesterProfile,
    cgpa_history_entry,
    history_entries,
    make_profile,
    percentage_history_entry,
    profiles,
    selection_locked,
    sgpa_history_entry,
    toggle_selection,
)


def test_sgpa_history_entry():
    subjects = [Subject("1", "Maths", 4, 95), Subject("2", "Physics", 3, 62)]
    entry = sgpa_history_entry(subjects, 8.71)
    assert entry.type == "SGPA"
    assert entry.result == 8.71
    assert entry.details == "2 subjects, 7 credits"
    assert entry.id
    assert entry.date


def test_cgpa_and_percentage_history_entries():
    entry = cgpa_history_entry([Semester("1", 8.0, 20), Semester("2", 9.0, 22)], 8.52)
    assert entry.type == "CGPA"
    assert entry.details == "2 semesters, 42 total credits"

    entry = percentage_history_entry(8.5, 80.0)
    assert entry.type == "Percentage"
    assert entry.details == "CGPA: 8.5"


def test_history_entries_get_distinct_ids():
    a = percentage_history_entry(7.0, 65.0)
    b = percentage_history_entry(7.0, 65.0)
    assert a.id != b.id


def test_history_entry_is_immutable():
    entry = percentage_history_entry(7.0, 65.0)
    with pytest.raises(AttributeError):
        entry.result = 99


def test_store_appends_in_order():
    session = {}
    store = RecordStore(session, "history")
    first = percentage_history_entry(7.0, 65.0)
    second = cgpa_history_entry([Semester("1", 8.0, 20)], 8.0)
    store.append(first)
    store.append(second)

    assert len(store) == 2
    assert [r["id"] for r in session["history"]] == [first.id, second.id]
    assert history_entries(store) == [first, second]


def test_store_record_shape():
    store = RecordStore({}, "history")
    store.append(percentage_history_entry(7.0, 65.0))
    assert set(store.all()[0]) == {"id", "date", "type", "result", "details"}


def test_store_delete_and_clear():
    store = RecordStore({}, "history")
    entries = [percentage_history_entry(c, (c - 0.5) * 10) for c in (6.0, 7.0, 8.0)]
    for entry in entries:
        store.append(entry)

    store.delete(entries[1].id)
    assert [e.id for e in history_entries(store)] == [entries[0].id, entries[2].id]

    store.clear()
    assert store.all() == []


def test_stores_with_different_keys_are_independent():
    session = {}
    history = RecordStore(session, "history")
    saved = RecordStore(session, "profiles")
    history.append(percentage_history_entry(7.0, 65.0))
    assert saved.all() == []


def test_make_profile():
    profile = make_profile("  Semester 3 ", "8.4", "22", "6")
    assert profile.name == "Semester 3"
    assert profile.sgpa == 8.4
    assert profile.credits == 22
    assert profile.subjects == 6
    assert profile.created_at


@pytest.mark.parametrize("name, sgpa", [("", "8"), ("   ", "8"), ("Sem 1", ""), ("Sem 1", None)])
def test_make_profile_ignores_incomplete_input(name, sgpa):
    assert make_profile(name, sgpa, "20", "5") is None


def test_make_profile_defaults_unparseable_counts_to_zero():
    profile = make_profile("Sem 2", "abc", "", "x")
    assert profile.sgpa == 0.0
    assert profile.credits == 0
    assert profile.subjects == 0


def test_profile_round_trips_through_store():
    store = RecordStore({}, "profiles")
    profile = make_profile("Sem 1", "9.1", "20", "5")
    store.append(profile)
    assert store.all()[0]["createdAt"] == profile.created_at
    assert profiles(store) == [profile]


def test_profile_from_dict_defaults():
    profile = SemesterProfile.from_dict({"id": "x", "name": "Old", "sgpa": 7})
    assert profile.credits == 0
    assert profile.subjects == 0


def test_toggle_selection_respects_limit():
    selected = []
    for pid in ["a", "b", "c", "d", "e"]:
        selected = toggle_selection(selected, pid, 4)
    assert selected == ["a", "b", "c", "d"]

    selected = toggle_selection(selected, "b", 4)
    assert selected == ["a", "c", "d"]

    selected = toggle_selection(selected, "e", 4)
    assert selected == ["a", "c", "d", "e"]


def test_history_entry_from_dict():
    entry = HistoryEntry.from_dict(
        {"id": 1, "date": "01/01/2026, 10:00:00", "type": "SGPA", "result": "8.5", "details": "x"}
    )
    assert entry.id == "1"
    assert entry.result == 8.5


def test_selection_locked_once_comparison_is_full():
    selected = ["a", "b", "c", "d"]
    assert selection_locked(selected, "e", 4) is True
    assert selection_locked(selected, "a", 4) is False
    assert selection_locked(["a"], "e", 4) is False
    # a locked profile stays out of the selection
    assert toggle_selection(selected, "e", 4) == selected
