"""Unit tests for the response cache, cooldown tracker and binding store."""

import json

import pytest
from unittest.mock import patch

from pewstats_match_reports.core.binding_store import Binding, BindingStore
from pewstats_match_reports.core.cooldown_tracker import CooldownTracker
from pewstats_match_reports.core.response_cache import ResponseCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestResponseCache:
    """Test cases for ResponseCache."""

    def test_set_and_get(self, clock):
        cache = ResponseCache(expiry_seconds=300, clock=clock)
        cache.set("match_steam_abc", {"data": {}})
        assert cache.get("match_steam_abc") == {"data": {}}
        assert len(cache) == 1

    def test_miss(self, clock):
        assert ResponseCache(clock=clock).get("missing") is None

    def test_entries_expire(self, clock):
        cache = ResponseCache(expiry_seconds=300, clock=clock)
        cache.set("key", "value")

        clock.advance(299)
        assert cache.get("key") == "value"

        clock.advance(1)
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_set_refreshes_entry(self, clock):
        cache = ResponseCache(expiry_seconds=10, clock=clock)
        cache.set("key", 1)
        clock.advance(8)
        cache.set("key", 2)
        clock.advance(8)
        assert cache.get("key") == 2

    def test_disabled_cache_stores_nothing(self, clock):
        cache = ResponseCache(enabled=False, clock=clock)
        cache.set("key", "value")
        assert cache.get("key") is None
        assert len(cache) == 0

    def test_clear(self, clock):
        cache = ResponseCache(clock=clock)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_set_purges_expired_entries(self, clock):
        cache = ResponseCache(expiry_seconds=300, clock=clock)
        for i in range(100):
            cache.set(f"telemetry_{i}", [i])

        clock.advance(300)
        cache.set("fresh", "value")

        assert len(cache) == 1
        assert cache.get("fresh") == "value"

    def test_set_keeps_live_entries(self, clock):
        cache = ResponseCache(expiry_seconds=300, clock=clock)
        cache.set("old", 1)
        clock.advance(100)
        cache.set("new", 2)
        assert len(cache) == 2
        assert cache.get("old") == 1

    @pytest.mark.parametrize("expiry", [0, -5])
    def test_invalid_expiry(self, expiry):
        with pytest.raises(ValueError):
            ResponseCache(expiry_seconds=expiry)


class TestCooldownTracker:
    """Test cases for CooldownTracker."""

    def test_first_use_is_allowed(self, clock):
        assert CooldownTracker(10, clock=clock).check("u1") == 0

    def test_remaining_seconds_round_up(self, clock):
        tracker = CooldownTracker(10, clock=clock)
        tracker.check("u1")

        clock.advance(0.5)
        assert tracker.check("u1") == 10
        clock.advance(8.6)
        assert tracker.check("u1") == 1

    def test_window_ends_after_cooldown(self, clock):
        tracker = CooldownTracker(10, clock=clock)
        tracker.check("u1")
        clock.advance(10)
        assert tracker.check("u1") == 0

    def test_rejected_check_does_not_extend_window(self, clock):
        tracker = CooldownTracker(10, clock=clock)
        tracker.check("u1")
        clock.advance(5)
        tracker.check("u1")
        clock.advance(5)
        assert tracker.check("u1") == 0

    def test_users_are_independent(self, clock):
        tracker = CooldownTracker(10, clock=clock)
        tracker.check("u1")
        assert tracker.check("u2") == 0

    def test_reset(self, clock):
        tracker = CooldownTracker(10, clock=clock)
        tracker.check("u1")
        tracker.reset("u1")
        assert tracker.check("u1") == 0

    def test_zero_cooldown(self, clock):
        tracker = CooldownTracker(0, clock=clock)
        tracker.check("u1")
        assert tracker.check("u1") == 0

    def test_negative_cooldown(self):
        with pytest.raises(ValueError):
            CooldownTracker(-1)


class TestBindingStore:
    """Test cases for BindingStore."""

    def test_missing_file_means_no_bindings(self, tmp_path):
        assert BindingStore(str(tmp_path / "bindings.json")).get("42") is None

    def test_bind_persists_to_file(self, tmp_path):
        path = tmp_path / "bindings.json"
        binding = BindingStore(str(path)).bind("42", " PlayerOne ", "kakao")

        assert binding.player_name == "PlayerOne"
        assert binding.platform == "kakao"
        assert binding.bound_at is not None

        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored["42"]["name"] == "PlayerOne"
        assert stored["42"]["platform"] == "kakao"

        assert BindingStore(str(path)).get("42") == binding

    def test_rebind_replaces_binding(self, tmp_path):
        store = BindingStore(str(tmp_path / "bindings.json"))
        store.bind("42", "PlayerOne", "steam")
        store.bind("42", "PlayerTwo", "steam")
        assert store.get("42").player_name == "PlayerTwo"

    def test_unbind(self, tmp_path):
        path = tmp_path / "bindings.json"
        store = BindingStore(str(path))
        store.bind("42", "PlayerOne", "steam")

        assert store.unbind("42") is True
        assert store.unbind("42") is False
        assert store.get("42") is None
        assert json.loads(path.read_text(encoding="utf-8")) == {}

    def test_user_ids_are_strings(self, tmp_path):
        store = BindingStore(str(tmp_path / "bindings.json"))
        store.bind(42, "PlayerOne", "steam")
        assert store.get("42").player_name == "PlayerOne"

    @pytest.mark.parametrize("name,platform", [("", "steam"), ("PlayerOne", "console")])
    def test_invalid_binding(self, tmp_path, name, platform):
        with pytest.raises(ValueError):
            BindingStore(str(tmp_path / "bindings.json")).bind("42", name, platform)

    def test_corrupt_file_is_treated_as_empty(self, tmp_path):
        path = tmp_path / "bindings.json"
        path.write_text("{not json", encoding="utf-8")
        store = BindingStore(str(path))

        assert store.get("42") is None
        store.bind("42", "PlayerOne", "steam")
        assert json.loads(path.read_text(encoding="utf-8"))["42"]["name"] == "PlayerOne"

    def test_invalid_entries_are_skipped(self, tmp_path):
        path = tmp_path / "bindings.json"
        path.write_text(
            json.dumps({"1": {"name": "Good", "platform": "psn"}, "2": {"platform": "steam"}, "3": "oops"}),
            encoding="utf-8",
        )
        store = BindingStore(str(path))

        assert store.get("1") == Binding(player_name="Good", platform="psn")
        assert store.get("2") is None
        assert store.get("3") is None

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "data" / "bindings.json"
        BindingStore(str(path)).bind("42", "PlayerOne", "steam")
        assert path.exists()

    def test_failed_save_keeps_previous_state(self, tmp_path):
        path = tmp_path / "bindings.json"
        store = BindingStore(str(path))
        store.bind("7", "Existing", "steam")

        with patch("os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.bind("42", "PlayerOne", "steam")
            with pytest.raises(OSError):
                store.unbind("7")

        assert store.get("42") is None
        assert store.get("7").player_name == "Existing"
        assert list(tmp_path.iterdir()) == [path]
        assert set(json.loads(path.read_text(encoding="utf-8"))) == {"7"}
