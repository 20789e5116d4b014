"""Data model for match documents, telemetry events and aggregated statistics.

MatchDocument and its parts are built once per query from the PUBG API
payload and never mutated. PlayerTelemetryStats is the only mutable record:
the replayer fills it during a single pass, then it is folded into an
immutable AggregatedMatchStats.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class BaseStats:
    """Per-participant statistics reported by the match endpoint.

    Distances are metres, times are seconds. Missing values are stored as 0.
    """

    kills: int = 0
    assists: int = 0
    damage_dealt: float = 0.0
    damage_received: float = 0.0
    headshot_kills: int = 0
    dbnos: int = 0
    time_survived: float = 0.0
    boosts: int = 0
    heals: int = 0
    revives: int = 0
    kill_place: int = 0
    win_place: int = 0
    road_kills: int = 0
    team_kills: int = 0
    longest_kill: float = 0.0
    walk_distance: float = 0.0
    ride_distance: float = 0.0
    swim_distance: float = 0.0
    weapons_acquired: int = 0
    vehicle_destroys: int = 0


@dataclass(frozen=True)
class Participant:
    participant_id: str
    player_name: str
    player_id: Optional[str] = None
    team_id: Optional[int] = None
    stats: BaseStats = field(default_factory=BaseStats)


@dataclass(frozen=True)
class Roster:
    roster_id: str
    team_id: Optional[int] = None
    rank: int = 0
    won: bool = False
    participant_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchDocument:
    """One match as returned by the PUBG API.

    Attributes:
        match_id: Match UUID
        created_at: Match start time (UTC), None if the API omitted it
        map_id: Internal map name (e.g. 'Baltic_Main')
        game_mode: Game mode (e.g. 'squad-fpp')
        duration_seconds: Match length in seconds
        participants: Participants in API order
        rosters: Team groupings
        telemetry_asset_id: Asset reference for the telemetry file, if any
        telemetry_url: Resolved CDN URL of the telemetry file, if any
        shard_id: Platform shard the match was played on
        match_type: 'official', 'competitive', 'custom', ...
        is_custom_match: Whether the match was a custom game
    """

    match_id: str
    created_at: Optional[datetime] = None
    map_id: Optional[str] = None
    game_mode: Optional[str] = None
    duration_seconds: int = 0
    participants: Tuple[Participant, ...] = ()
    rosters: Tuple[Roster, ...] = ()
    telemetry_asset_id: Optional[str] = None
    telemetry_url: Optional[str] = None
    shard_id: Optional[str] = None
    match_type: Optional[str] = None
    is_custom_match: bool = False

    @property
    def player_count(self) -> int:
        return len(self.participants)


class EventKind(str, Enum):
    TAKE_DAMAGE = "PlayerTakeDamage"
    ATTACK = "PlayerAttack"
    KILL = "PlayerKill"
    KNOCKDOWN = "PlayerMakeGroggy"
    POSITION = "PlayerPosition"


@dataclass(frozen=True)
class Location:
    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True)
class TelemetryEvent:
    """A parsed telemetry event relevant to the replay.

    Character names are display names, never account ids. ``actor`` is the
    attacker/killer/moving character, ``victim`` the affected one.
    """

    kind: EventKind
    timestamp_ms: int
    actor: Optional[str] = None
    victim: Optional[str] = None
    weapon_causer_id: Optional[str] = None
    damage: float = 0.0
    is_headshot: bool = False
    damage_reason: Optional[str] = None
    location: Optional[Location] = None
    in_vehicle: bool = False
    in_water: bool = False
    raw_type: Optional[str] = None


@dataclass
class WeaponTally:
    category: str = "Other"
    kills: int = 0
    headshots: int = 0
    knockdowns: int = 0
    damage: float = 0.0


@dataclass
class MovementTally:
    total: float = 0.0
    vehicle: float = 0.0
    walking: float = 0.0
    swimming: float = 0.0


@dataclass
class PlayerTelemetryStats:
    """Replay accumulator for one player in one match.

    Attributes:
        damage_dealt: Damage dealt to other players
        damage_taken: Damage received from any source
        headshot_kills: Kills flagged as headshots
        kills: Kills credited to the player
        kill_streaks: Streak lengths (>= 2) in the order they ended
        weapon_stats: Canonical weapon name -> tally
        movement: Distance breakdown
        position_samples: Position events seen for the player
        events_processed: Events that touched the player
        skipped_events: Malformed events skipped during replay
    """

    damage_dealt: float = 0.0
    damage_taken: float = 0.0
    headshot_kills: int = 0
    kills: int = 0
    kill_streaks: List[int] = field(default_factory=list)
    weapon_stats: Dict[str, WeaponTally] = field(default_factory=dict)
    movement: MovementTally = field(default_factory=MovementTally)
    position_samples: int = 0
    events_processed: int = 0
    skipped_events: int = 0

    @property
    def has_movement(self) -> bool:
        return self.position_samples > 0


@dataclass(frozen=True)
class WeaponSummary:
    name: str
    category: str
    kills: int = 0
    headshots: int = 0
    knockdowns: int = 0
    damage: int = 0


@dataclass(frozen=True)
class MovementSummary:
    total: int = 0
    vehicle: int = 0
    walking: int = 0
    swimming: int = 0


@dataclass(frozen=True)
class AggregatedMatchStats:
    """Normalized per-player record for one match.

    Every numeric field is a number (never None); weapon entries with neither
    kills nor damage are already pruned.
    """

    kills: int = 0
    assists: int = 0
    dbnos: int = 0
    heals: int = 0
    boosts: int = 0
    revives: int = 0
    kill_place: int = 0
    win_place: int = 0
    road_kills: int = 0
    team_kills: int = 0
    longest_kill: int = 0
    weapons_acquired: int = 0
    vehicle_destroys: int = 0
    headshot_kills: int = 0
    time_survived: int = 0
    damage_dealt: int = 0
    damage_taken: int = 0
    movement: MovementSummary = field(default_factory=MovementSummary)
    weapon_stats: Dict[str, WeaponSummary] = field(default_factory=dict)
    kill_streaks: List[int] = field(default_factory=list)
    telemetry_available: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
