"""Unit tests for TelemetryReplayer."""

import math

import pytest

from conftest import MATCH_START, iso
from pewstats_match_reports.core.models import EventKind, TelemetryEvent
from pewstats_match_reports.processors.telemetry_replayer import (
    MalformedEventError,
    TelemetryReplayer,
    parse_event,
    parse_timestamp_ms,
    resolve_event_kind,
)


@pytest.fixture
def replayer():
    return TelemetryReplayer()


class TestEventParsing:
    """Test cases for raw event parsing helpers."""

    @pytest.mark.parametrize(
        "event_type,kind",
        [
            ("LogPlayerTakeDamage", EventKind.TAKE_DAMAGE),
            ("LogPlayerKill", EventKind.KILL),
            ("LogPlayerKillV2", EventKind.KILL),
            ("LogPlayerMakeGroggy", EventKind.KNOCKDOWN),
            ("LogPlayerPosition", EventKind.POSITION),
            ("LogPlayerAttack", EventKind.ATTACK),
            ("LogMatchStart", None),
            ("LogPlayerRevive", None),
            (None, None),
        ],
    )
    def test_resolve_event_kind(self, event_type, kind):
        assert resolve_event_kind(event_type) == kind

    def test_timestamp_with_seven_fractional_digits(self):
        expected = int(MATCH_START.timestamp() * 1000) + 123
        assert parse_timestamp_ms("2024-01-01T12:00:00.1234567Z") == expected

    def test_timestamp_without_fraction(self):
        assert parse_timestamp_ms("2024-01-01T12:00:00Z") == int(MATCH_START.timestamp() * 1000)

    def test_numeric_timestamp(self):
        assert parse_timestamp_ms(1500) == 1500

    @pytest.mark.parametrize("value", [None, True, "yesterday", {"t": 1}, math.nan, math.inf, -math.inf])
    def test_invalid_timestamp(self, value):
        with pytest.raises(MalformedEventError):
            parse_timestamp_ms(value)

    def test_irrelevant_event_returns_none(self):
        assert parse_event({"_T": "LogMatchStart", "_D": iso(0)}) is None

    def test_kill_v2_uses_killer_damage_info(self, events):
        event = parse_event(events.kill("PlayerOne", "EnemyOne", headshot=True))
        assert event.kind == EventKind.KILL
        assert event.actor == "PlayerOne"
        assert event.victim == "EnemyOne"
        assert event.weapon_causer_id == "WeapHK416_C"
        assert event.is_headshot is True

    def test_kill_v1_reads_top_level_fields(self, events):
        event = parse_event(events.kill_v1("PlayerOne", "EnemyOne", headshot=True))
        assert event.weapon_causer_id == "WeapAK47_C"
        assert event.is_headshot is True

    def test_position_in_vehicle(self, events):
        event = parse_event(events.position("PlayerOne", 10, 20, z=5, vehicle=True))
        assert event.location.x == 10.0
        assert event.location.z == 5.0
        assert event.in_vehicle is True

    def test_position_in_water(self, events):
        raw = events.position("PlayerOne", 10, 20)
        raw["character"]["isInWater"] = True
        event = parse_event(raw)
        assert event.in_water is True
        assert event.in_vehicle is False

    def test_kill_without_victim_is_malformed(self, events):
        raw = events.kill("PlayerOne", "EnemyOne")
        raw["victim"] = None
        with pytest.raises(MalformedEventError):
            parse_event(raw)

    def test_non_numeric_damage_is_malformed(self, events):
        with pytest.raises(MalformedEventError):
            parse_event(events.damage("PlayerOne", "EnemyOne", "lots"))


class TestReplay:
    """Test cases for TelemetryReplayer.replay."""

    def test_sample_match(self, sample_telemetry):
        stats = TelemetryReplayer(units_per_meter=100).replay(sample_telemetry, "PlayerOne")

        assert stats.damage_dealt == pytest.approx(125.5)
        assert stats.damage_taken == pytest.approx(30.2)
        assert stats.kills == 2
        assert stats.headshot_kills == 1
        assert stats.kill_streaks == [2]
        assert list(stats.weapon_stats) == ["M416"]

        m416 = stats.weapon_stats["M416"]
        assert m416.category == "AR"
        assert m416.kills == 2
        assert m416.headshots == 1
        assert m416.knockdowns == 1
        assert m416.damage == pytest.approx(125.5)

        assert stats.movement.walking == pytest.approx(500.0)
        assert stats.movement.vehicle == pytest.approx(600.0)
        assert stats.movement.swimming == 0.0
        assert stats.movement.total == pytest.approx(1100.0)
        assert stats.position_samples == 3
        assert stats.skipped_events == 0

    def test_subject_name_is_case_insensitive(self, sample_telemetry):
        stats = TelemetryReplayer(units_per_meter=100).replay(sample_telemetry, "playerone")
        assert stats.kills == 2

    def test_empty_subject_name_raises(self, replayer):
        with pytest.raises(ValueError):
            replayer.replay([], "  ")

    def test_invalid_units_per_meter(self):
        with pytest.raises(ValueError):
            TelemetryReplayer(units_per_meter=0)

    def test_empty_stream(self, replayer):
        stats = replayer.replay([], "PlayerOne")
        assert stats.kills == 0
        assert stats.kill_streaks == []
        assert stats.weapon_stats == {}
        assert stats.has_movement is False

    def test_kill_streaks(self, replayer, events):
        kills = [events.kill("PlayerOne", f"Enemy{i}", t=t) for i, t in enumerate([0, 5000, 9000, 25000, 26000])]
        stats = replayer.replay(kills, "PlayerOne")
        assert stats.kill_streaks == [3, 2]
        assert stats.kills == 5

    def test_streak_window_is_inclusive(self, replayer, events):
        stats = replayer.replay(
            [events.kill("PlayerOne", "A", t=0), events.kill("PlayerOne", "B", t=10_000)], "PlayerOne"
        )
        assert stats.kill_streaks == [2]

    def test_isolated_kills_are_not_streaks(self, replayer, events):
        stats = replayer.replay(
            [events.kill("PlayerOne", "A", t=0), events.kill("PlayerOne", "B", t=10_001)], "PlayerOne"
        )
        assert stats.kill_streaks == []

    def test_unsorted_events_are_ordered_by_timestamp(self, replayer, events):
        stream = [
            events.kill("PlayerOne", "C", t=9000),
            events.kill("PlayerOne", "A", t=0),
            events.kill("PlayerOne", "D", t=40_000),
            events.kill("PlayerOne", "B", t=5000),
        ]
        assert replayer.replay(stream, "PlayerOne").kill_streaks == [3]

    def test_movement_breakdown(self, replayer, events):
        stream = [
            events.position("PlayerOne", 0, 0, t=0),
            events.position("PlayerOne", 3, 4, t=1000),
            events.position("PlayerOne", 3, 4, t=2000, vehicle=True),
        ]
        stats = replayer.replay(stream, "PlayerOne")
        assert stats.movement.walking == pytest.approx(5.0)
        assert stats.movement.vehicle == 0.0
        assert stats.movement.total == pytest.approx(5.0)

    def test_movement_total_is_sum_of_parts(self, replayer, events):
        water = events.position("PlayerOne", 0, 12, t=3000)
        water["character"]["isInWater"] = True
        stream = [
            events.position("PlayerOne", 0, 0, t=0),
            events.position("PlayerOne", 0, 5, t=1000, vehicle=True),
            events.position("PlayerOne", 0, 7, t=2000),
            water,
        ]
        movement = replayer.replay(stream, "PlayerOne").movement
        assert movement.vehicle == pytest.approx(5.0)
        assert movement.walking == pytest.approx(2.0)
        assert movement.swimming == pytest.approx(5.0)
        assert movement.total == pytest.approx(movement.vehicle + movement.walking + movement.swimming)

    def test_movement_is_3d(self, replayer, events):
        stream = [
            events.position("PlayerOne", 0, 0, t=0, z=0),
            events.position("PlayerOne", 0, 0, t=1000, z=7),
        ]
        assert replayer.replay(stream, "PlayerOne").movement.walking == pytest.approx(7.0)

    @pytest.mark.parametrize("damage", [-10.0, None, math.nan])
    def test_damage_never_decreases(self, replayer, events, damage):
        stream = [
            events.damage("EnemyOne", "PlayerOne", 20.0, t=0),
            events.damage("EnemyOne", "PlayerOne", damage, t=1000),
        ]
        assert replayer.replay(stream, "PlayerOne").damage_taken == pytest.approx(20.0)

    def test_environment_damage_counts_as_taken(self, replayer, events):
        stream = [events.damage(None, "PlayerOne", 5.0, weapon="Bluezonebomb_EffectActor_C")]
        stats = replayer.replay(stream, "PlayerOne")
        assert stats.damage_taken == pytest.approx(5.0)
        assert stats.damage_dealt == 0.0

    def test_self_damage_is_not_damage_dealt(self, replayer, events):
        stats = replayer.replay([events.damage("PlayerOne", "PlayerOne", 15.0)], "PlayerOne")
        assert stats.damage_dealt == 0.0
        assert stats.damage_taken == pytest.approx(15.0)

    def test_attack_events_add_no_damage(self, replayer, events):
        stats = replayer.replay([events.attack("PlayerOne", t=0), events.attack("PlayerOne", t=100)], "PlayerOne")
        assert stats.damage_dealt == 0.0
        assert stats.weapon_stats == {}
        assert stats.events_processed == 2

    def test_other_players_are_ignored(self, replayer, events):
        stream = [
            events.kill("EnemyOne", "Teammate", t=0),
            events.damage("EnemyOne", "Teammate", 50.0, t=0),
            events.groggy("EnemyOne", "Teammate", t=0),
            events.position("EnemyOne", 0, 0, t=0),
            events.position("EnemyOne", 100, 0, t=1000),
        ]
        stats = replayer.replay(stream, "PlayerOne")
        assert stats.kills == 0
        assert stats.damage_dealt == 0.0
        assert stats.damage_taken == 0.0
        assert stats.has_movement is False
        assert stats.events_processed == 0

    def test_suicide_is_not_a_kill(self, replayer, events):
        stats = replayer.replay([events.kill("PlayerOne", "PlayerOne")], "PlayerOne")
        assert stats.kills == 0

    def test_kills_group_by_canonical_weapon(self, replayer, events):
        stream = [
            events.kill("PlayerOne", "A", t=0, weapon="WeapAK47_C"),
            events.kill_v1("PlayerOne", "B", t=60_000, weapon="Item_Weapon_AK47_C", headshot=True),
        ]
        stats = replayer.replay(stream, "PlayerOne")
        assert list(stats.weapon_stats) == ["AKM"]
        assert stats.weapon_stats["AKM"].kills == 2
        assert stats.weapon_stats["AKM"].headshots == 1

    def test_malformed_events_are_skipped_and_counted(self, replayer, events):
        no_victim = events.kill("PlayerOne", "A", t=1000)
        no_victim["victim"] = {}
        bad_time = events.kill("PlayerOne", "B", t=2000)
        bad_time["_D"] = "not a timestamp"
        stream = ["garbage", no_victim, bad_time, events.kill("PlayerOne", "C", t=3000)]

        stats = replayer.replay(stream, "PlayerOne")

        assert stats.skipped_events == 3
        assert stats.kills == 1

    def test_accepts_parsed_events(self, replayer):
        stream = [
            TelemetryEvent(kind=EventKind.KILL, timestamp_ms=0, actor="PlayerOne", victim="A"),
            TelemetryEvent(kind=EventKind.KILL, timestamp_ms=1000, actor="PlayerOne", victim="B"),
        ]
        stats = replayer.replay(stream, "PlayerOne")
        assert stats.kill_streaks == [2]
        assert "Unknown" in stats.weapon_stats

    def test_replay_is_repeatable(self, sample_telemetry):
        replayer = TelemetryReplayer(units_per_meter=100)
        assert replayer.replay(sample_telemetry, "PlayerOne") == replayer.replay(sample_telemetry, "PlayerOne")


class TestNonFiniteValues:
    """NaN and infinity decoded from JSON are treated as malformed events."""

    @pytest.mark.parametrize("value", [math.nan, math.inf])
    def test_non_finite_timestamp_is_skipped(self, replayer, events, value):
        bad = events.kill("PlayerOne", "A", t=0)
        bad["_D"] = value
        stream = [bad, events.kill("PlayerOne", "B", t=1000)]

        stats = replayer.replay(stream, "PlayerOne")

        assert stats.skipped_events == 1
        assert stats.kills == 1

    @pytest.mark.parametrize("axis", ["x", "y", "z"])
    def test_non_finite_location_is_skipped(self, replayer, events, axis):
        bad = events.position("PlayerOne", 0, 0, t=1000)
        bad["character"]["location"][axis] = math.nan
        stream = [
            events.position("PlayerOne", 0, 0, t=0),
            bad,
            events.position("PlayerOne", 3, 4, t=2000),
        ]

        stats = replayer.replay(stream, "PlayerOne")

        assert stats.skipped_events == 1
        assert stats.movement.walking == pytest.approx(5.0)
        assert stats.movement.total == pytest.approx(5.0)

    @pytest.mark.parametrize("damage", [math.inf, -math.inf, math.nan])
    def test_non_finite_damage_is_skipped(self, replayer, events, damage):
        stream = [
            events.damage("PlayerOne", "EnemyOne", 40.0, t=0),
            events.damage("PlayerOne", "EnemyOne", damage, t=1000),
        ]

        stats = replayer.replay(stream, "PlayerOne")

        assert stats.skipped_events == 1
        assert stats.damage_dealt == pytest.approx(40.0)

    def test_parse_event_rejects_infinite_damage(self, events):
        with pytest.raises(MalformedEventError):
            parse_event(events.damage("PlayerOne", "EnemyOne", math.inf))


class TestWeaponReview:
    def test_flagged_weapon_is_logged(self, events, caplog):
        replayer = TelemetryReplayer()
        with caplog.at_level("WARNING"):
            stats = replayer.replay([events.kill("PlayerOne", "A", weapon="WeapUMP_C")], "PlayerOne")

        assert "UMP45" in stats.weapon_stats
        assert "WeapUMP_C" in caplog.text
        assert "needs review" in caplog.text

    def test_unflagged_weapon_is_not_logged(self, events, caplog):
        with caplog.at_level("WARNING"):
            TelemetryReplayer().replay([events.kill("PlayerOne", "A")], "PlayerOne")
        assert "needs review" not in caplog.text
