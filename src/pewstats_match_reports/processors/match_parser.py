"""
Match Parser

Turns the PUBG JSON:API match payload (``data`` + ``included``) into an
immutable MatchDocument.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.models import BaseStats, MatchDocument, Participant, Roster

logger = logging.getLogger(__name__)

# participant stats key -> BaseStats field
BASE_STATS_FIELDS = {
    "kills": "kills",
    "assists": "assists",
    "damageDealt": "damage_dealt",
    "damageReceived": "damage_received",
    "headshotKills": "headshot_kills",
    "DBNOs": "dbnos",
    "timeSurvived": "time_survived",
    "boosts": "boosts",
    "heals": "heals",
    "revives": "revives",
    "killPlace": "kill_place",
    "winPlace": "win_place",
    "roadKills": "road_kills",
    "teamKills": "team_kills",
    "longestKill": "longest_kill",
    "walkDistance": "walk_distance",
    "rideDistance": "ride_distance",
    "swimDistance": "swim_distance",
    "weaponsAcquired": "weapons_acquired",
    "vehicleDestroys": "vehicle_destroys",
}

FLOAT_FIELDS = {
    "damage_dealt",
    "damage_received",
    "time_survived",
    "longest_kill",
    "walk_distance",
    "ride_distance",
    "swim_distance",
}


def parse_match_document(match_data: Dict[str, Any]) -> MatchDocument:
    """
    Parse a raw match payload.

    Args:
        match_data: Raw match data from the PUBG API

    Returns:
        MatchDocument

    Raises:
        ValueError: If the payload has no match data
    """
    if not match_data or not isinstance(match_data.get("data"), dict):
        raise ValueError("Invalid match data provided")

    data = match_data["data"]
    attributes = data.get("attributes") or {}
    match_id = data.get("id")
    if not match_id:
        raise ValueError("Match data has no id")

    included = match_data.get("included") or []
    participant_items = [item for item in included if item.get("type") == "participant"]
    roster_items = [item for item in included if item.get("type") == "roster"]

    rosters = [parse_roster(item) for item in roster_items]
    team_lookup = create_team_lookup(rosters)

    participants = []
    for item in participant_items:
        participant = parse_participant(item, team_lookup)
        if participant is not None:
            participants.append(participant)

    telemetry_asset_id = extract_telemetry_asset_id(match_data)
    telemetry_url = extract_telemetry_url(match_data, telemetry_asset_id)

    logger.debug(
        f"Parsed match {match_id}: {len(participants)} participants, {len(rosters)} rosters, "
        f"telemetry={'yes' if telemetry_url else 'no'}"
    )

    return MatchDocument(
        match_id=match_id,
        created_at=parse_datetime(attributes.get("createdAt")),
        map_id=attributes.get("mapName"),
        game_mode=attributes.get("gameMode"),
        duration_seconds=int(_to_number(attributes.get("duration"))),
        participants=tuple(participants),
        rosters=tuple(rosters),
        telemetry_asset_id=telemetry_asset_id,
        telemetry_url=telemetry_url,
        shard_id=attributes.get("shardId"),
        match_type=attributes.get("matchType"),
        is_custom_match=bool(attributes.get("isCustomMatch", False)),
    )


def parse_roster(roster: Dict[str, Any]) -> Roster:
    """
    Parse one roster item.

    ``won`` arrives as the string "true"/"false" from the API.
    """
    attributes = roster.get("attributes") or {}
    stats = attributes.get("stats") or {}
    won = attributes.get("won")
    refs = (roster.get("relationships") or {}).get("participants", {}).get("data") or []

    return Roster(
        roster_id=roster.get("id") or "",
        team_id=stats.get("teamId"),
        rank=int(_to_number(stats.get("rank"))),
        won=won is True or str(won).lower() == "true",
        participant_ids=tuple(ref.get("id") for ref in refs if ref.get("id")),
    )


def create_team_lookup(rosters: List[Roster]) -> Dict[str, Optional[int]]:
    """
    Map participant_id -> team_id.

    Args:
        rosters: Parsed rosters

    Returns:
        Dictionary mapping participant_id -> team_id
    """
    lookup = {}
    for roster in rosters:
        for participant_id in roster.participant_ids:
            lookup[participant_id] = roster.team_id
    return lookup


def parse_participant(
    participant: Dict[str, Any], team_lookup: Dict[str, Optional[int]]
) -> Optional[Participant]:
    """
    Parse one participant item.

    Returns:
        Participant, or None if it has no id or name
    """
    participant_id = participant.get("id")
    stats = (participant.get("attributes") or {}).get("stats") or {}
    name = stats.get("name")

    if not participant_id or not name:
        logger.debug(f"Skipping participant without id/name: {participant_id}")
        return None

    return Participant(
        participant_id=participant_id,
        player_name=name,
        player_id=stats.get("playerId"),
        team_id=team_lookup.get(participant_id),
        stats=parse_base_stats(stats),
    )


def parse_base_stats(stats: Dict[str, Any]) -> BaseStats:
    """
    Build BaseStats from a participant stats block, defaulting absent values to 0.
    """
    values = {}
    for api_key, field_name in BASE_STATS_FIELDS.items():
        number = _to_number(stats.get(api_key))
        values[field_name] = float(number) if field_name in FLOAT_FIELDS else int(number)
    return BaseStats(**values)


def extract_telemetry_asset_id(match_data: Dict[str, Any]) -> Optional[str]:
    """
    Get the telemetry asset id from match relationships.

    The id lives at match_data["data"]["relationships"]["assets"]["data"][0]["id"].
    """
    assets = (
        (match_data.get("data") or {})
        .get("relationships", {})
        .get("assets", {})
        .get("data")
        or []
    )
    if not assets:
        return None
    return assets[0].get("id")


def extract_telemetry_url(
    match_data: Dict[str, Any], asset_id: Optional[str]
) -> Optional[str]:
    """
    Resolve the telemetry CDN URL for an asset id.

    Looks up the included item with type == "asset" and a matching id and
    returns its attributes.URL.
    """
    if not asset_id:
        return None

    for item in match_data.get("included") or []:
        if item.get("type") == "asset" and item.get("id") == asset_id:
            return (item.get("attributes") or {}).get("URL")

    logger.warning(f"Telemetry asset {asset_id} not found in included section")
    return None


def parse_datetime(datetime_str: Optional[str]) -> Optional[datetime]:
    """
    Parse ISO 8601 datetime string from PUBG API.

    Args:
        datetime_str: ISO 8601 datetime string (e.g. "2024-01-01T12:00:00Z")

    Returns:
        Parsed datetime object or None if invalid
    """
    if not datetime_str:
        return None

    try:
        return datetime.fromisoformat(datetime_str.replace("Z", "+00:00"))
    except (ValueError, AttributeError) as e:
        logger.warning(f"Failed to parse datetime '{datetime_str}': {e}")
        return None


def _to_number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0
