"""
Rendering Data Adapter

Reshapes a match and a player's AggregatedMatchStats into a plain nested
dict of strings, numbers and lists for the text/HTML report templates.
Every key is always present.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from ..core.models import AggregatedMatchStats, MatchDocument, Participant
from .stat_aggregator import round_half_up

UNKNOWN_LABEL = "Unknown"

MAP_TRANSLATIONS = {
    "Baltic_Main": "Erangel (Remastered)",
    "Chimera_Main": "Paramo",
    "Desert_Main": "Miramar",
    "DihorOtok_Main": "Vikendi",
    "Erangel_Main": "Erangel",
    "Heaven_Main": "Haven",
    "Kiki_Main": "Deston",
    "Range_Main": "Camp Jackal",
    "Savage_Main": "Sanhok",
    "Summerland_Main": "Karakin",
    "Tiger_Main": "Taego",
    "Neon_Main": "Rondo",
}

# Modes that are not <prefix>-<team size>[-fpp]
SPECIAL_GAME_MODES = {
    "war": "War Mode",
    "zombie": "Zombie Mode",
    "lab": "Lab",
    "tdm": "Team Deathmatch",
    "ibr": "Intense Battle Royale",
}

GAME_MODE_PREFIXES = {
    "normal": "Normal",
    "conquest": "Conquest",
    "esports": "Esports",
}

TEAM_SIZES = {
    "solo": "Solo",
    "duo": "Duo",
    "squad": "Squad",
}


def get_map_name(map_id: Optional[str]) -> str:
    """
    Transform internal PUBG map name to display name.

    Examples:
        >>> get_map_name("Baltic_Main")
        'Erangel (Remastered)'
        >>> get_map_name(None)
        'Unknown'
    """
    if not map_id:
        return UNKNOWN_LABEL
    return MAP_TRANSLATIONS.get(map_id, map_id)


def get_game_mode(game_mode: Optional[str]) -> str:
    """
    Human-readable game mode.

    Examples:
        >>> get_game_mode("squad-fpp")
        'Squad FPP'
        >>> get_game_mode("esports-duo")
        'Esports Duo'
        >>> get_game_mode("some-new-mode")
        'some-new-mode'
    """
    if not game_mode:
        return UNKNOWN_LABEL
    if game_mode in SPECIAL_GAME_MODES:
        return SPECIAL_GAME_MODES[game_mode]

    parts = game_mode.split("-")
    words = []
    if parts and parts[0] in GAME_MODE_PREFIXES:
        words.append(GAME_MODE_PREFIXES[parts.pop(0)])
    if not parts or parts[0] not in TEAM_SIZES:
        return game_mode
    words.append(TEAM_SIZES[parts.pop(0)])
    if parts == ["fpp"]:
        words.append("FPP")
    elif parts:
        return game_mode
    return " ".join(words)


def format_date(value: Optional[datetime]) -> str:
    """Format a match timestamp as 'YYYY-MM-DD HH:MM:SS' (UTC)."""
    if value is None:
        return UNKNOWN_LABEL
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(seconds: Optional[float]) -> str:
    """
    Format a duration as minutes and seconds.

    Examples:
        >>> format_duration(1830)
        '30m 30s'
    """
    total = max(int(seconds or 0), 0)
    minutes, remaining = divmod(total, 60)
    return f"{minutes}m {remaining}s"


def to_view_model(
    match_doc: MatchDocument,
    aggregated: AggregatedMatchStats,
    player_name: str,
    platform: str,
    teammates: Optional[Sequence[Participant]] = None,
) -> Dict[str, Any]:
    """
    Build the report view model.

    Args:
        match_doc: Parsed match
        aggregated: Player's aggregated stats for the match
        player_name: Display name shown on the report
        platform: Shard the lookup ran against
        teammates: Teammates to list, already filtered

    Returns:
        Nested dict: match, player, summary, combat, weapons, kill_streaks,
        movement, teammates, telemetry_available
    """
    weapons = [
        {
            "name": weapon.name,
            "category": weapon.category or UNKNOWN_LABEL,
            "kills": weapon.kills,
            "headshots": weapon.headshots,
            "knockdowns": weapon.knockdowns,
            "damage": weapon.damage,
        }
        for weapon in aggregated.weapon_stats.values()
    ]

    return {
        "match": {
            "id": match_doc.match_id or "",
            "time": format_date(match_doc.created_at),
            "map": get_map_name(match_doc.map_id),
            "mode": get_game_mode(match_doc.game_mode),
            "duration": format_duration(match_doc.duration_seconds),
            "player_count": match_doc.player_count,
            "team_count": len(match_doc.rosters),
        },
        "player": {
            "name": player_name or UNKNOWN_LABEL,
            "platform": (platform or "").upper(),
        },
        "summary": {
            "rank": aggregated.win_place,
            "kill_place": aggregated.kill_place,
            "kills": aggregated.kills,
            "assists": aggregated.assists,
            "dbnos": aggregated.dbnos,
            "revives": aggregated.revives,
            "heals": aggregated.heals,
            "boosts": aggregated.boosts,
            "time_survived": format_duration(aggregated.time_survived),
            "time_survived_seconds": aggregated.time_survived,
        },
        "combat": {
            "damage_dealt": aggregated.damage_dealt,
            "damage_taken": aggregated.damage_taken,
            "headshot_kills": aggregated.headshot_kills,
            "headshot_rate": _percentage(aggregated.headshot_kills, aggregated.kills),
            "longest_kill": aggregated.longest_kill,
            "road_kills": aggregated.road_kills,
            "team_kills": aggregated.team_kills,
            "vehicle_destroys": aggregated.vehicle_destroys,
            "weapons_acquired": aggregated.weapons_acquired,
        },
        "weapons": weapons,
        "kill_streaks": list(aggregated.kill_streaks),
        "best_streak": max(aggregated.kill_streaks, default=0),
        "movement": {
            "total": aggregated.movement.total,
            "vehicle": aggregated.movement.vehicle,
            "walking": aggregated.movement.walking,
            "swimming": aggregated.movement.swimming,
        },
        "teammates": _teammate_rows(teammates or []),
        "telemetry_available": aggregated.telemetry_available,
    }


def _teammate_rows(teammates: Sequence[Participant]) -> List[Dict[str, Any]]:
    return [
        {
            "name": mate.player_name,
            "kills": mate.stats.kills,
            "assists": mate.stats.assists,
            "damage": round_half_up(mate.stats.damage_dealt),
            "revives": mate.stats.revives,
            "time_survived": format_duration(mate.stats.time_survived),
        }
        for mate in teammates
    ]


def _percentage(part: int, whole: int) -> int:
    if not whole:
        return 0
    return round_half_up(part * 100 / whole)
