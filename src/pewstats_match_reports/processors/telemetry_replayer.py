"""
Telemetry Replayer

Replays one match's telemetry event stream for a single player and builds
PlayerTelemetryStats: damage dealt/taken, kills, headshots, per-weapon
tallies, kill streaks and a movement breakdown.

Damage dealt is taken from LogPlayerTakeDamage events where the player is
the attacker and someone else is the victim. LogPlayerAttack events carry no
reliable damage amount and never add damage.
"""

import logging
import math
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from ..config.weapon_catalog import canonicalize
from ..core.models import (
    EventKind,
    Location,
    PlayerTelemetryStats,
    TelemetryEvent,
    WeaponTally,
)
from ..metrics import TELEMETRY_EVENTS_SKIPPED, TELEMETRY_REPLAY_DURATION, TELEMETRY_REPLAYS


# "LogPlayerKillV2" -> "PlayerKill", "LogPlayerPosition" -> "PlayerPosition"
_EVENT_TYPE_PATTERN = re.compile(r"^(?:Log)?(Player[A-Za-z]+?)(?:V\d+)?$")

_KIND_BY_NAME = {kind.value: kind for kind in EventKind}

# PUBG timestamps may carry up to 7 fractional digits
_FRACTION_PATTERN = re.compile(r"\.(\d+)")


class MalformedEventError(ValueError):
    """Raised when a relevant telemetry event is missing or has invalid fields."""
    pass


def get_event_type(event: Dict[str, Any]) -> Optional[str]:
    """
    Get event type from multiple possible keys.

    Args:
        event: Event dictionary

    Returns:
        Event type string or None
    """
    return event.get("_T") or event.get("type") or event.get("event_type")


def get_nested(obj: Dict[str, Any], path: str, default=None) -> Any:
    """
    Safely get nested dictionary value.

    Args:
        obj: Dictionary to extract from
        path: Dot-separated path (e.g., "character.location.x")
        default: Default value if not found

    Returns:
        Value or default
    """
    current = obj
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def resolve_event_kind(event_type: Optional[str]) -> Optional[EventKind]:
    """Map a raw telemetry type (any version suffix) to an EventKind, or None if irrelevant."""
    if not event_type:
        return None
    match = _EVENT_TYPE_PATTERN.match(event_type)
    if not match:
        return None
    return _KIND_BY_NAME.get(match.group(1))


def parse_timestamp_ms(value: Any) -> int:
    """
    Convert an event timestamp to epoch milliseconds.

    Accepts ISO 8601 strings ("2024-01-01T12:00:00.123Z") and numeric
    millisecond values.

    Raises:
        MalformedEventError: If the value is missing or unparseable
    """
    if isinstance(value, bool) or value is None:
        raise MalformedEventError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise MalformedEventError(f"Invalid timestamp: {value!r}")
        return int(value)
    if not isinstance(value, str):
        raise MalformedEventError(f"Invalid timestamp: {value!r}")

    try:
        text = value.strip().replace("Z", "+00:00")
        text = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise MalformedEventError(f"Invalid timestamp '{value}': {e}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(round(parsed.timestamp() * 1000))


def parse_event(raw: Any) -> Optional[TelemetryEvent]:
    """
    Parse a raw telemetry dict into a TelemetryEvent.

    Returns:
        TelemetryEvent, or None if the event type is not used by the replay

    Raises:
        MalformedEventError: If a relevant event is missing required fields
    """
    if not isinstance(raw, dict):
        raise MalformedEventError(f"Event is not an object: {type(raw).__name__}")

    event_type = get_event_type(raw)
    kind = resolve_event_kind(event_type)
    if kind is None:
        return None

    timestamp_ms = parse_timestamp_ms(raw.get("_D"))

    if kind == EventKind.POSITION:
        return _parse_position(raw, event_type, timestamp_ms)
    if kind == EventKind.KILL:
        return _parse_kill(raw, event_type, timestamp_ms)

    actor = get_nested(raw, "attacker.name")
    victim = get_nested(raw, "victim.name")

    if kind == EventKind.ATTACK:
        if not actor:
            raise MalformedEventError(f"{event_type} without attacker name")
        weapon = get_nested(raw, "weapon.itemId") or raw.get("damageCauserName")
    else:
        if not victim:
            raise MalformedEventError(f"{event_type} without victim name")
        weapon = raw.get("damageCauserName")

    return TelemetryEvent(
        kind=kind,
        timestamp_ms=timestamp_ms,
        actor=actor,
        victim=victim,
        weapon_causer_id=weapon,
        damage=_parse_damage(raw.get("damage"), event_type),
        damage_reason=raw.get("damageReason"),
        is_headshot=raw.get("damageReason") == "HeadShot",
        raw_type=event_type,
    )


def _parse_kill(raw: Dict[str, Any], event_type: str, timestamp_ms: int) -> TelemetryEvent:
    victim = get_nested(raw, "victim.name")
    if not victim:
        raise MalformedEventError(f"{event_type} without victim name")

    # V2 events nest causer info; V1 events carry it at the top level
    damage_info = raw.get("killerDamageInfo") or raw.get("finishDamageInfo") or {}
    if not isinstance(damage_info, dict):
        raise MalformedEventError(f"{event_type} with invalid damage info")

    weapon = damage_info.get("damageCauserName") or raw.get("damageCauserName")
    reason = damage_info.get("damageReason") or raw.get("damageReason")

    return TelemetryEvent(
        kind=EventKind.KILL,
        timestamp_ms=timestamp_ms,
        actor=get_nested(raw, "killer.name"),
        victim=victim,
        weapon_causer_id=weapon,
        damage_reason=reason,
        is_headshot=reason == "HeadShot" or bool(raw.get("headShot")),
        raw_type=event_type,
    )


def _parse_position(raw: Dict[str, Any], event_type: str, timestamp_ms: int) -> TelemetryEvent:
    character = raw.get("character")
    if not isinstance(character, dict) or not character.get("name"):
        raise MalformedEventError(f"{event_type} without character name")

    location = character.get("location") or raw.get("position")
    if not isinstance(location, dict):
        raise MalformedEventError(f"{event_type} without location")

    try:
        point = Location(
            x=float(location["x"]),
            y=float(location["y"]),
            z=float(location.get("z") or 0.0),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedEventError(f"{event_type} with invalid location: {e}") from e
    if not all(math.isfinite(axis) for axis in (point.x, point.y, point.z)):
        raise MalformedEventError(f"{event_type} with non-finite location: {point}")

    in_vehicle = bool(raw.get("vehicle")) or bool(character.get("isInVehicle"))

    return TelemetryEvent(
        kind=EventKind.POSITION,
        timestamp_ms=timestamp_ms,
        actor=character["name"],
        location=point,
        in_vehicle=in_vehicle,
        in_water=bool(character.get("isInWater")),
        raw_type=event_type,
    )


def _parse_damage(value: Any, event_type: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedEventError(f"{event_type} with non-numeric damage: {value!r}")
    if not math.isfinite(value):
        raise MalformedEventError(f"{event_type} with non-finite damage: {value!r}")
    return float(value)


def calculate_distance(loc1: Location, loc2: Location) -> float:
    """Euclidean distance between two locations, in telemetry units."""
    return math.sqrt((loc2.x - loc1.x) ** 2 + (loc2.y - loc1.y) ** 2 + (loc2.z - loc1.z) ** 2)


class TelemetryReplayer:
    """
    Single-pass replay of a telemetry event stream for one player.

    The replay holds no state between calls, so one instance can serve
    any number of independent matches.
    """

    # Maximum gap between consecutive kills of one streak
    STREAK_WINDOW_MS = 10_000

    def __init__(self, logger=None, units_per_meter: float = 1.0):
        """
        Initialize the replayer.

        Args:
            logger: Optional logger
            units_per_meter: Telemetry coordinate units per metre
                (PUBG telemetry uses centimetres, i.e. 100)
        """
        if units_per_meter <= 0:
            raise ValueError(f"units_per_meter must be positive, got {units_per_meter}")
        self.logger = logger or logging.getLogger(__name__)
        self.units_per_meter = units_per_meter

    def replay(
        self,
        events: Iterable[Union[Dict[str, Any], TelemetryEvent]],
        subject_name: str,
    ) -> PlayerTelemetryStats:
        """
        Replay events for one player.

        Args:
            events: Raw telemetry dicts or parsed TelemetryEvents, in any order
            subject_name: Display name of the player (compared case-insensitively)

        Returns:
            PlayerTelemetryStats for the player
        """
        if not subject_name or not subject_name.strip():
            raise ValueError("subject_name cannot be empty")

        start_time = time.time()
        subject = subject_name.strip().casefold()
        stats = PlayerTelemetryStats()

        parsed = self._parse_events(events, stats)
        # Streak detection depends on order; sorted() is stable for equal timestamps
        parsed = sorted(parsed, key=lambda event: event.timestamp_ms)

        last_kill_ms: Optional[int] = None
        current_streak = 0
        last_location: Optional[Location] = None

        for event in parsed:
            actor = _fold(event.actor)
            victim = _fold(event.victim)

            if event.kind == EventKind.TAKE_DAMAGE:
                damage = max(event.damage, 0.0)
                if victim == subject:
                    stats.damage_taken += damage
                    stats.events_processed += 1
                elif actor == subject:
                    stats.damage_dealt += damage
                    self._weapon_tally(stats, event.weapon_causer_id).damage += damage
                    stats.events_processed += 1

            elif event.kind == EventKind.KILL:
                if actor != subject or victim == subject:
                    continue
                stats.events_processed += 1
                stats.kills += 1
                tally = self._weapon_tally(stats, event.weapon_causer_id)
                tally.kills += 1
                if event.is_headshot:
                    tally.headshots += 1
                    stats.headshot_kills += 1

                if last_kill_ms is not None and event.timestamp_ms - last_kill_ms <= self.STREAK_WINDOW_MS:
                    current_streak += 1
                else:
                    if current_streak > 1:
                        stats.kill_streaks.append(current_streak)
                    current_streak = 1
                last_kill_ms = event.timestamp_ms

            elif event.kind == EventKind.KNOCKDOWN:
                if actor == subject and victim != subject:
                    self._weapon_tally(stats, event.weapon_causer_id).knockdowns += 1
                    stats.events_processed += 1

            elif event.kind == EventKind.POSITION:
                if actor != subject:
                    continue
                stats.events_processed += 1
                stats.position_samples += 1
                if last_location is not None:
                    distance = calculate_distance(last_location, event.location) / self.units_per_meter
                    if event.in_vehicle:
                        stats.movement.vehicle += distance
                    elif event.in_water:
                        stats.movement.swimming += distance
                    else:
                        stats.movement.walking += distance
                    stats.movement.total = (
                        stats.movement.vehicle + stats.movement.walking + stats.movement.swimming
                    )
                last_location = event.location

            elif event.kind == EventKind.ATTACK:
                if actor == subject:
                    stats.events_processed += 1

        if current_streak > 1:
            stats.kill_streaks.append(current_streak)

        duration = time.time() - start_time
        TELEMETRY_REPLAY_DURATION.observe(duration)
        TELEMETRY_REPLAYS.labels(status="success").inc()

        self.logger.debug(
            f"Replayed {len(parsed)} events for '{subject_name}' in {duration:.3f}s: "
            f"{stats.kills} kills, {stats.damage_dealt:.0f} damage, streaks={stats.kill_streaks}"
        )
        return stats

    def _parse_events(
        self,
        events: Iterable[Union[Dict[str, Any], TelemetryEvent]],
        stats: PlayerTelemetryStats,
    ) -> List[TelemetryEvent]:
        parsed = []
        for index, raw in enumerate(events):
            if isinstance(raw, TelemetryEvent):
                parsed.append(raw)
                continue
            try:
                event = parse_event(raw)
            except MalformedEventError as e:
                stats.skipped_events += 1
                self.logger.debug(f"Skipping malformed telemetry event #{index}: {e}")
                continue
            if event is not None:
                parsed.append(event)

        if stats.skipped_events:
            TELEMETRY_EVENTS_SKIPPED.inc(stats.skipped_events)
            self.logger.warning(f"Skipped {stats.skipped_events} malformed telemetry events")
        return parsed

    def _weapon_tally(self, stats: PlayerTelemetryStats, raw_weapon_id: Optional[str]) -> WeaponTally:
        info = canonicalize(raw_weapon_id)
        tally = stats.weapon_stats.get(info.name)
        if tally is None:
            if info.needs_review:
                self.logger.warning(f"Weapon id '{raw_weapon_id}' mapped to '{info.name}' needs review")
            tally = stats.weapon_stats[info.name] = WeaponTally(category=info.category.value)
        return tally


def _fold(name: Optional[str]) -> Optional[str]:
    return name.strip().casefold() if name else None
