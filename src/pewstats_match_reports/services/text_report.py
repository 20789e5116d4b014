"""Plain-text match cards for chat replies and the CLI."""

from typing import Any, Dict, List

from pewstats_match_reports.processors.match_overview import MatchOverview
from pewstats_match_reports.processors.season_stats import SeasonSummary
from pewstats_match_reports.processors.view_model_adapter import (
    format_date,
    format_duration,
    get_game_mode,
    get_map_name,
)

MAX_WEAPON_LINES = 5


def render_match_report(view_model: Dict[str, Any]) -> str:
    """
    Render a player report view model as text.

    Args:
        view_model: Output of to_view_model()

    Returns:
        Multi-line report
    """
    match = view_model["match"]
    player = view_model["player"]
    summary = view_model["summary"]
    combat = view_model["combat"]
    movement = view_model["movement"]

    lines = [
        f"{player['name']} [{player['platform']}]",
        f"{match['map']} | {match['mode']} | {match['time']} | {match['duration']}",
        f"Match: {match['id']}",
        "",
        f"Rank #{summary['rank']}/{match['team_count']}  "
        f"Kills {summary['kills']} (#{summary['kill_place']})  "
        f"Assists {summary['assists']}  Knocks {summary['dbnos']}",
        f"Survived {summary['time_survived']}  Heals {summary['heals']}  "
        f"Boosts {summary['boosts']}  Revives {summary['revives']}",
        "",
        "[Combat]",
        f"Damage dealt {combat['damage_dealt']}  Damage taken {combat['damage_taken']}",
        f"Headshot kills {combat['headshot_kills']} ({combat['headshot_rate']}%)  "
        f"Longest kill {combat['longest_kill']}m",
    ]

    if view_model["weapons"]:
        lines.append("")
        lines.append("[Weapons]")
        for weapon in view_model["weapons"][:MAX_WEAPON_LINES]:
            lines.append(
                f"{weapon['name']} ({weapon['category']}): {weapon['kills']} kills, "
                f"{weapon['headshots']} headshots, {weapon['knockdowns']} knocks, "
                f"{weapon['damage']} damage"
            )

    if view_model["kill_streaks"]:
        streaks = ", ".join(str(streak) for streak in view_model["kill_streaks"])
        lines.append("")
        lines.append(f"[Kill streaks] {streaks} (best {view_model['best_streak']})")

    lines.append("")
    lines.append(
        f"[Movement] {movement['total']}m total: walking {movement['walking']}m, "
        f"vehicle {movement['vehicle']}m, swimming {movement['swimming']}m"
    )

    if view_model["teammates"]:
        lines.append("")
        lines.append("[Teammates]")
        for mate in view_model["teammates"]:
            lines.append(
                f"{mate['name']}: {mate['kills']} kills, {mate['assists']} assists, "
                f"{mate['damage']} damage, survived {mate['time_survived']}"
            )

    if not view_model["telemetry_available"]:
        lines.append("")
        lines.append("(Telemetry unavailable, weapon and streak details omitted)")

    return "\n".join(lines)


def render_match_overview(overview: MatchOverview) -> str:
    """Render a whole-match overview as text."""
    lines = [
        f"Match {overview.match_id}",
        f"{get_map_name(overview.map_id)} | {get_game_mode(overview.game_mode)} | "
        f"{format_date(overview.created_at)} | {format_duration(overview.duration_seconds)}",
        f"Players: {overview.player_count}  Teams: {overview.team_count}",
    ]

    lines.append("")
    if overview.winning_team:
        lines.append(
            f"Winners: {', '.join(overview.winning_team)} ({overview.winning_team_kills} kills)"
        )
    else:
        lines.append("Winners: unknown")

    if overview.kill_ranking:
        lines.append("")
        lines.append("[Kill ranking]")
        lines.extend(_ranking_lines(overview))

    return "\n".join(lines)


def _ranking_lines(overview: MatchOverview) -> List[str]:
    return [
        f"{entry.rank}. {entry.player_name}: {entry.kills} kills, {entry.damage} damage, "
        f"placed #{entry.win_place}"
        for entry in overview.kill_ranking
    ]


def render_season_stats(player_name: str, platform: str, summary: SeasonSummary) -> str:
    """Render current-season stats per mode plus a season total."""
    lines = [
        f"{player_name} [{platform.upper()}]",
        f"Season: {summary.season_id}",
    ]

    for mode in summary.modes:
        lines.append("")
        lines.append(f"[{mode.mode}]")
        lines.append(f"Matches {mode.rounds_played}  Wins {mode.wins}")
        lines.append(f"Kills {mode.kills}  Assists {mode.assists}  K/D {mode.kd:.2f}")

    total = summary.total
    lines.append("")
    lines.append("[Season total]")
    lines.append(f"Matches {total.rounds_played}  Wins {total.wins}  Win rate {total.win_rate:.2f}%")
    lines.append(f"Kills {total.kills}  K/D {total.kd:.2f}")
    return "\n".join(lines)
