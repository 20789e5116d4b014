"""
Season Stats

Summarizes a player's season stats payload
(GET /players/{accountId}/seasons/{seasonId}) into per-mode and total rows
for the player lookup command.

K/D here is kills / (rounds played - wins): a won round has no death. With no
deaths the kill count itself is used.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

# Display mode -> gameModeStats keys folded into it
SEASON_MODES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Solo", ("solo", "solo-fpp")),
    ("Duo", ("duo", "duo-fpp")),
    ("Squad", ("squad", "squad-fpp")),
)


@dataclass(frozen=True)
class SeasonModeStats:
    mode: str
    rounds_played: int = 0
    wins: int = 0
    kills: int = 0
    assists: int = 0

    @property
    def deaths(self) -> int:
        return max(self.rounds_played - self.wins, 0)

    @property
    def kd(self) -> float:
        return calculate_kd(self.kills, self.rounds_played, self.wins)

    @property
    def win_rate(self) -> float:
        if self.rounds_played <= 0:
            return 0.0
        return self.wins / self.rounds_played * 100


@dataclass(frozen=True)
class SeasonSummary:
    season_id: str
    modes: Tuple[SeasonModeStats, ...]
    total: SeasonModeStats


def calculate_kd(kills: int, rounds_played: int, wins: int) -> float:
    """
    Kills per death, where deaths = rounds played - wins.

    Examples:
        >>> calculate_kd(30, 12, 2)
        3.0
        >>> calculate_kd(4, 1, 1)
        4.0
        >>> calculate_kd(0, 0, 0)
        0.0
    """
    deaths = rounds_played - wins
    if deaths > 0:
        return kills / deaths
    return float(kills) if kills > 0 else 0.0


def _int_stat(stats: Dict[str, Any], key: str) -> int:
    value = stats.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def summarize_season(payload: Dict[str, Any], season_id: str = "") -> SeasonSummary:
    """
    Fold a season stats payload into Solo/Duo/Squad rows plus a total.

    Args:
        payload: Raw season stats response
        season_id: Season id, used when the payload does not carry one

    Returns:
        SeasonSummary (missing modes count as zero)
    """
    data = payload.get("data") or {}
    attributes = data.get("attributes") or {}
    game_mode_stats = attributes.get("gameModeStats") or {}

    modes = []
    for mode, keys in SEASON_MODES:
        rows = [game_mode_stats.get(key) or {} for key in keys]
        modes.append(
            SeasonModeStats(
                mode=mode,
                rounds_played=sum(_int_stat(row, "roundsPlayed") for row in rows),
                wins=sum(_int_stat(row, "wins") for row in rows),
                kills=sum(_int_stat(row, "kills") for row in rows),
                assists=sum(_int_stat(row, "assists") for row in rows),
            )
        )

    total = SeasonModeStats(
        mode="Total",
        rounds_played=sum(m.rounds_played for m in modes),
        wins=sum(m.wins for m in modes),
        kills=sum(m.kills for m in modes),
        assists=sum(m.assists for m in modes),
    )

    relationships = data.get("relationships") or {}
    season = (relationships.get("season") or {}).get("data") or {}
    return SeasonSummary(season_id=season.get("id") or season_id, modes=tuple(modes), total=total)
