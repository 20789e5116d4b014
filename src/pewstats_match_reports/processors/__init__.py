"""
Processors that turn match payloads and telemetry into report data.
"""

from .entity_matcher import find_participant, find_roster, teammates_of
from .match_overview import MatchOverview, summarize_match
from .match_parser import parse_match_document
from .season_stats import SeasonSummary, calculate_kd, summarize_season
from .stat_aggregator import aggregate
from .telemetry_replayer import MalformedEventError, TelemetryReplayer
from .view_model_adapter import to_view_model

__all__ = [
    "MalformedEventError",
    "MatchOverview",
    "SeasonSummary",
    "TelemetryReplayer",
    "aggregate",
    "calculate_kd",
    "find_participant",
    "find_roster",
    "parse_match_document",
    "summarize_match",
    "summarize_season",
    "teammates_of",
    "to_view_model",
]
