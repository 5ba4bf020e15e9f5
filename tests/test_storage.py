"""Tests for client-side storage helpers."""

import json
import re

from planbeau.storage import (
    PREFILL_PACKAGE_KEY,
    RECENT_SEARCHES_KEY,
    SESSION_ID_KEY,
    InMemoryStorage,
    generate_session_id,
    get_auth_token,
    get_or_create_session_id,
    load_recent_searches,
    pop_prefill_selection,
    remove_recent_search,
    save_prefill_selection,
    save_recent_search,
)


class TestInMemoryStorage:
    def test_get_set_remove(self, storage):
        storage.set("token", "abc")
        assert storage.get("token") == "abc"
        storage.remove("token")
        assert storage.get("token") is None

    def test_remove_missing_key_is_noop(self, storage):
        storage.remove("nothing")

    def test_initial_values(self):
        assert get_auth_token(InMemoryStorage({"token": "xyz"})) == "xyz"


class TestRecentSearches:
    def test_empty_by_default(self, storage):
        assert load_recent_searches(storage) == []

    def test_newest_first(self, storage):
        save_recent_search(storage, {"category": "dj", "location": "Toronto, ON"})
        save_recent_search(storage, {"category": "photo", "location": "Toronto, ON"})
        recent = load_recent_searches(storage)
        assert [s["category"] for s in recent] == ["photo", "dj"]

    def test_duplicate_moves_to_front(self, storage):
        save_recent_search(storage, {"category": "dj", "location": "Toronto, ON"})
        save_recent_search(storage, {"category": "photo", "location": "Toronto, ON"})
        save_recent_search(storage, {"category": "dj", "location": "Toronto, ON", "when": "later"})
        recent = load_recent_searches(storage)
        assert len(recent) == 2
        assert recent[0]["when"] == "later"

    def test_capped_at_five(self, storage):
        for i in range(8):
            save_recent_search(storage, {"category": f"c{i}", "location": "Ottawa, ON"})
        recent = load_recent_searches(storage)
        assert len(recent) == 5
        assert recent[0]["category"] == "c7"

    def test_corrupt_json_loads_empty(self, storage):
        storage.set(RECENT_SEARCHES_KEY, "{not json")
        assert load_recent_searches(storage) == []

    def test_non_list_loads_empty(self, storage):
        storage.set(RECENT_SEARCHES_KEY, json.dumps({"category": "dj"}))
        assert load_recent_searches(storage) == []

    def test_remove_by_index(self, storage):
        save_recent_search(storage, {"category": "dj", "location": "A, ON"})
        save_recent_search(storage, {"category": "photo", "location": "A, ON"})
        recent = remove_recent_search(storage, 0)
        assert [s["category"] for s in recent] == ["dj"]
        assert load_recent_searches(storage) == recent


class TestSessionId:
    def test_format(self):
        assert re.fullmatch(r"sess_\d+_[a-z0-9]{13}", generate_session_id())

    def test_created_once_and_reused(self, storage):
        first = get_or_create_session_id(storage)
        assert storage.get(SESSION_ID_KEY) == first
        assert get_or_create_session_id(storage) == first


class TestPrefillSelection:
    def test_round_trip_clears(self, storage):
        save_prefill_selection(storage, package_id=12, service_id="34")
        assert pop_prefill_selection(storage) == ("12", "34")
        assert pop_prefill_selection(storage) == (None, None)

    def test_only_package(self, storage):
        save_prefill_selection(storage, package_id="5")
        assert storage.get(PREFILL_PACKAGE_KEY) == "5"
        assert pop_prefill_selection(storage) == ("5", None)
