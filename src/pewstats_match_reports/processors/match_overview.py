"""
Match Overview

Whole-match summary used by the match lookup command: the winning team and
a kill ranking across all participants.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from ..core.models import MatchDocument, Participant, Roster
from .stat_aggregator import round_half_up


@dataclass(frozen=True)
class RankingEntry:
    rank: int
    player_name: str
    kills: int
    damage: int
    win_place: int


@dataclass(frozen=True)
class MatchOverview:
    match_id: str
    map_id: Optional[str]
    game_mode: Optional[str]
    created_at: Optional[datetime]
    duration_seconds: int
    player_count: int
    team_count: int
    winning_team: Tuple[str, ...] = ()
    winning_team_kills: int = 0
    kill_ranking: Tuple[RankingEntry, ...] = ()


def find_winning_roster(match_doc: MatchDocument) -> Optional[Roster]:
    """Roster flagged as won, else the one ranked 1st."""
    for roster in match_doc.rosters:
        if roster.won:
            return roster
    for roster in match_doc.rosters:
        if roster.rank == 1:
            return roster
    return None


def summarize_match(match_doc: MatchDocument, top_n: int = 5) -> MatchOverview:
    """
    Summarize a match.

    Args:
        match_doc: Parsed match
        top_n: Number of players in the kill ranking

    Returns:
        MatchOverview
    """
    if top_n < 0:
        raise ValueError(f"top_n must be >= 0, got {top_n}")

    by_id = {p.participant_id: p for p in match_doc.participants}

    winners: List[Participant] = []
    winner = find_winning_roster(match_doc)
    if winner is not None:
        winners = [by_id[pid] for pid in winner.participant_ids if pid in by_id]

    # Ties on kills go to the better placement; sorted() keeps API order after that
    ranked = sorted(
        match_doc.participants,
        key=lambda p: (-p.stats.kills, p.stats.win_place or float("inf")),
    )

    ranking = tuple(
        RankingEntry(
            rank=index + 1,
            player_name=p.player_name,
            kills=p.stats.kills,
            damage=round_half_up(p.stats.damage_dealt),
            win_place=p.stats.win_place,
        )
        for index, p in enumerate(ranked[:top_n])
    )

    return MatchOverview(
        match_id=match_doc.match_id,
        map_id=match_doc.map_id,
        game_mode=match_doc.game_mode,
        created_at=match_doc.created_at,
        duration_seconds=match_doc.duration_seconds,
        player_count=match_doc.player_count,
        team_count=len(match_doc.rosters),
        winning_team=tuple(p.player_name for p in winners),
        winning_team_kills=sum(p.stats.kills for p in winners),
        kill_ranking=ranking,
    )
