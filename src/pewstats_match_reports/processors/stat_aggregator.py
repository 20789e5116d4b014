"""
Match Stat Aggregator

Merges a participant's BaseStats (match endpoint) with PlayerTelemetryStats
(telemetry replay) into one AggregatedMatchStats record.

Rules:
    - Counters (kills, assists, DBNOs, ...) always come from BaseStats
    - Damage dealt/taken and headshot kills come from telemetry when it was
      replayed, otherwise from BaseStats
    - Movement comes from telemetry when position samples were seen,
      otherwise from BaseStats walk/ride/swim distances
    - Damage and distances are rounded half-up to whole numbers
    - Weapons with neither kills nor damage are dropped
"""

import math
from typing import Dict, Optional

from ..core.models import (
    AggregatedMatchStats,
    MovementSummary,
    Participant,
    PlayerTelemetryStats,
    WeaponSummary,
)


def round_half_up(value: Optional[float]) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3)."""
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    if number < 0:
        return -math.floor(-number + 0.5)
    return math.floor(number + 0.5)


def aggregate(
    participant: Participant, telemetry_stats: Optional[PlayerTelemetryStats] = None
) -> AggregatedMatchStats:
    """
    Build the normalized stats record for one player.

    Args:
        participant: Participant from the match document
        telemetry_stats: Replay result, or None when telemetry was unavailable

    Returns:
        AggregatedMatchStats with every numeric field populated
    """
    base = participant.stats
    has_telemetry = telemetry_stats is not None

    if has_telemetry:
        damage_dealt = telemetry_stats.damage_dealt
        damage_taken = telemetry_stats.damage_taken
        headshot_kills = telemetry_stats.headshot_kills
        weapon_stats = summarize_weapons(telemetry_stats)
        kill_streaks = list(telemetry_stats.kill_streaks)
    else:
        damage_dealt = base.damage_dealt
        damage_taken = base.damage_received
        headshot_kills = base.headshot_kills
        weapon_stats = {}
        kill_streaks = []

    if has_telemetry and telemetry_stats.has_movement:
        movement = MovementSummary(
            total=round_half_up(telemetry_stats.movement.total),
            vehicle=round_half_up(telemetry_stats.movement.vehicle),
            walking=round_half_up(telemetry_stats.movement.walking),
            swimming=round_half_up(telemetry_stats.movement.swimming),
        )
    else:
        movement = MovementSummary(
            total=round_half_up(base.walk_distance + base.ride_distance + base.swim_distance),
            vehicle=round_half_up(base.ride_distance),
            walking=round_half_up(base.walk_distance),
            swimming=round_half_up(base.swim_distance),
        )

    return AggregatedMatchStats(
        kills=int(base.kills or 0),
        assists=int(base.assists or 0),
        dbnos=int(base.dbnos or 0),
        heals=int(base.heals or 0),
        boosts=int(base.boosts or 0),
        revives=int(base.revives or 0),
        kill_place=int(base.kill_place or 0),
        win_place=int(base.win_place or 0),
        road_kills=int(base.road_kills or 0),
        team_kills=int(base.team_kills or 0),
        longest_kill=round_half_up(base.longest_kill),
        weapons_acquired=int(base.weapons_acquired or 0),
        vehicle_destroys=int(base.vehicle_destroys or 0),
        headshot_kills=int(headshot_kills or 0),
        time_survived=round_half_up(base.time_survived),
        damage_dealt=round_half_up(damage_dealt),
        damage_taken=round_half_up(damage_taken),
        movement=movement,
        weapon_stats=weapon_stats,
        kill_streaks=kill_streaks,
        telemetry_available=has_telemetry,
    )


def summarize_weapons(telemetry_stats: PlayerTelemetryStats) -> Dict[str, WeaponSummary]:
    """
    Round and prune weapon tallies.

    Entries with zero kills and zero raw damage are dropped, then damage is
    rounded, so a 0.2 damage entry survives with damage 0. The result is
    ordered by kills desc, then damage desc, then name.
    """
    summaries = []
    for name, tally in telemetry_stats.weapon_stats.items():
        if tally.kills == 0 and not tally.damage:
            continue
        damage = round_half_up(tally.damage)
        summaries.append(
            WeaponSummary(
                name=name,
                category=tally.category,
                kills=tally.kills,
                headshots=tally.headshots,
                knockdowns=tally.knockdowns,
                damage=damage,
            )
        )

    summaries.sort(key=lambda w: (-w.kills, -w.damage, w.name))
    return {summary.name: summary for summary in summaries}
