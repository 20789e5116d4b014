"""Match Report Service - per-player match reports from match data and telemetry.

Pipeline for one request:
1. Fetch the match document (PUBG API)
2. Locate the player in the match (case-insensitive)
3. Download and replay telemetry for the player
4. Merge base stats and telemetry stats
5. Shape the result into a view model for rendering

A missing telemetry file degrades the report to base stats instead of
failing it. Transport errors are not handled here and reach the caller.
"""

import json
import logging
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, Optional

import click

from pewstats_match_reports.config.settings import SUPPORTED_PLATFORMS, load_settings
from pewstats_match_reports.core.models import AggregatedMatchStats, MatchDocument, Participant
from pewstats_match_reports.core.pubg_client import (
    NotFoundError,
    PUBGClient,
    TelemetryUnavailableError,
)
from pewstats_match_reports.core.response_cache import ResponseCache
from pewstats_match_reports.metrics import (
    PIPELINE_DURATION,
    PIPELINE_RUNS,
    TELEMETRY_REPLAYS,
    WORKER_ERRORS,
    start_metrics_server,
)
from pewstats_match_reports.processors import (
    TelemetryReplayer,
    aggregate,
    find_participant,
    teammates_of,
    to_view_model,
)
from pewstats_match_reports.services.text_report import render_match_report


logger = logging.getLogger(__name__)


class MatchReportStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    MATCH_NOT_FOUND = "match_not_found"
    PLAYER_NOT_IN_MATCH = "player_not_in_match"


@dataclass(frozen=True)
class MatchReportResult:
    """Outcome of one report request.

    Attributes:
        status: Result variant
        match: Match document (None if the match was not found)
        participant: The player's participant record, if found
        stats: Aggregated stats (OK and DEGRADED only)
        view_model: Render-ready structure (OK and DEGRADED only)
        message: User-facing explanation for non-OK results
        generated_at: When the report was built, kept apart from the stats
    """

    status: MatchReportStatus
    match: Optional[MatchDocument] = None
    participant: Optional[Participant] = None
    stats: Optional[AggregatedMatchStats] = None
    view_model: Optional[Dict[str, Any]] = None
    message: str = ""
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_report(self) -> bool:
        return self.stats is not None


class MatchReportService:
    """Builds per-player match reports.

    Example:
        >>> service = MatchReportService(pubg_client, TelemetryReplayer(units_per_meter=100))
        >>> result = service.build_report("a1b2c3d4-...", "PlayerName")
        >>> result.status
        <MatchReportStatus.OK: 'ok'>
    """

    def __init__(
        self,
        pubg_client: PUBGClient,
        replayer: Optional[TelemetryReplayer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize match report service.

        Args:
            pubg_client: PUBG API client instance
            replayer: Telemetry replayer (default: centimetre telemetry)
            logger: Optional logger (creates new one if None)
        """
        self.pubg_client = pubg_client
        self.logger = logger or logging.getLogger(__name__)
        self.replayer = replayer or TelemetryReplayer(logger=self.logger, units_per_meter=100)

    def build_report(
        self, match_id: str, player_name: str, platform: Optional[str] = None
    ) -> MatchReportResult:
        """Fetch a match and its telemetry and build the player's report.

        Args:
            match_id: Match UUID
            player_name: Player display name (any case)
            platform: Shard override (default: client's platform)

        Returns:
            MatchReportResult

        Raises:
            FetchError: If the API or CDN cannot be reached
            RateLimitError: If the API keeps rate limiting
        """
        start_time = time.time()
        platform = platform or self.pubg_client.platform
        self.logger.info(f"Building report for '{player_name}' in match {match_id} ({platform})")

        try:
            try:
                match_doc = self.pubg_client.fetch_match(match_id, platform)
            except NotFoundError:
                self.logger.info(f"Match {match_id} not found")
                return self._finish(
                    MatchReportResult(
                        status=MatchReportStatus.MATCH_NOT_FOUND,
                        message=f"Match {match_id} not found",
                    ),
                    start_time,
                )

            participant = find_participant(match_doc, player_name)
            if participant is None:
                self.logger.info(f"Player '{player_name}' not found in match {match_id}")
                return self._finish(self._player_not_in_match(match_doc, player_name), start_time)

            try:
                events = self.pubg_client.get_telemetry(match_doc)
            except TelemetryUnavailableError as e:
                self.logger.warning(f"Telemetry unavailable, using base stats only: {e}")
                TELEMETRY_REPLAYS.labels(status="unavailable").inc()
                events = None

            result = self._assemble(match_doc, participant, events, platform)
            return self._finish(result, start_time)

        except Exception as e:
            PIPELINE_RUNS.labels(status="failed").inc()
            PIPELINE_DURATION.observe(time.time() - start_time)
            WORKER_ERRORS.labels(component="match_report", error_type=type(e).__name__).inc()
            self.logger.error(f"Match report for match {match_id} failed: {e}", exc_info=True)
            raise

    def report_from_data(
        self,
        match_doc: MatchDocument,
        player_name: str,
        platform: str,
        telemetry_events: Optional[Iterable[Dict[str, Any]]] = None,
    ) -> MatchReportResult:
        """Build a report from data that was already fetched.

        No network access. Passing telemetry_events=None means telemetry is
        unavailable and yields a DEGRADED report.
        """
        participant = find_participant(match_doc, player_name)
        if participant is None:
            return self._player_not_in_match(match_doc, player_name)
        return self._assemble(match_doc, participant, telemetry_events, platform)

    def _assemble(
        self,
        match_doc: MatchDocument,
        participant: Participant,
        telemetry_events: Optional[Iterable[Dict[str, Any]]],
        platform: str,
    ) -> MatchReportResult:
        telemetry_stats = None
        if telemetry_events is not None:
            telemetry_stats = self.replayer.replay(telemetry_events, participant.player_name)

        stats = aggregate(participant, telemetry_stats)
        teammates = teammates_of(match_doc, participant.participant_id)
        view_model = to_view_model(
            match_doc, stats, participant.player_name, platform, teammates=teammates
        )

        if telemetry_stats is None:
            return MatchReportResult(
                status=MatchReportStatus.DEGRADED,
                match=match_doc,
                participant=participant,
                stats=stats,
                view_model=view_model,
                message="Telemetry unavailable for this match, showing summary stats only",
            )

        return MatchReportResult(
            status=MatchReportStatus.OK,
            match=match_doc,
            participant=participant,
            stats=stats,
            view_model=view_model,
        )

    @staticmethod
    def _player_not_in_match(match_doc: MatchDocument, player_name: str) -> MatchReportResult:
        return MatchReportResult(
            status=MatchReportStatus.PLAYER_NOT_IN_MATCH,
            match=match_doc,
            message=f"No data for player {player_name} in match {match_doc.match_id}",
        )

    def _finish(self, result: MatchReportResult, start_time: float) -> MatchReportResult:
        duration = time.time() - start_time
        PIPELINE_RUNS.labels(status=result.status.value).inc()
        PIPELINE_DURATION.observe(duration)
        self.logger.info(f"Report finished with status {result.status.value} in {duration:.2f}s")
        return result


def _echo_summary(result: MatchReportResult) -> None:
    click.echo("\n" + "=" * 60)
    click.echo(render_match_report(result.view_model))
    click.echo("=" * 60 + "\n")
    if result.status == MatchReportStatus.DEGRADED:
        click.echo(f"Warning: {result.message}", err=True)


@click.command()
@click.option("--match-id", required=True, help="Match UUID")
@click.option("--player", "player_name", required=True, help="Player display name")
@click.option(
    "--platform",
    default=None,
    type=click.Choice(SUPPORTED_PLATFORMS),
    help="Platform shard (default: PUBG_DEFAULT_PLATFORM)",
)
@click.option("--env-file", default=".env", help="Path to .env file (default: .env)")
@click.option("--log-level", default=None, help="Log level (default: LOG_LEVEL or INFO)")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the view model as JSON")
def match_report(
    match_id: str,
    player_name: str,
    platform: Optional[str],
    env_file: str,
    log_level: Optional[str],
    as_json: bool,
):
    """Print a player's report for one PUBG match.

    Example:
        python -m pewstats_match_reports.services.match_report_service \\
            --match-id a1b2c3d4-... --player PlayerName
    """
    settings = load_settings(env_file)

    logging.basicConfig(
        level=getattr(logging, (log_level or settings.log_level).upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    cli_logger = logging.getLogger(__name__)

    if not settings.api_key:
        click.echo("Error: PUBG_API_KEY is not set", err=True)
        raise click.Abort()

    if settings.metrics_port:
        start_metrics_server(port=settings.metrics_port, worker_name="match-report")

    cache = ResponseCache(
        expiry_seconds=settings.cache_expiry_seconds, enabled=settings.enable_cache
    )
    client = PUBGClient(
        api_key=settings.api_key,
        platform=settings.default_platform,
        max_retries=settings.max_retries,
        timeout=settings.request_timeout,
        cache=cache,
    )
    service = MatchReportService(
        client,
        TelemetryReplayer(logger=cli_logger, units_per_meter=settings.telemetry_units_per_meter),
        logger=cli_logger,
    )

    try:
        result = service.build_report(match_id, player_name, platform)
    except Exception as e:
        cli_logger.error(f"Match report failed: {e}")
        click.echo(f"Error: {e}", err=True)
        raise click.Abort()

    if not result.has_report:
        click.echo(result.message, err=True)
        sys.exit(1)

    if as_json:
        payload: Dict[str, Any] = {
            "status": result.status.value,
            "generated_at": result.generated_at.isoformat(),
            "report": result.view_model,
        }
        click.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        _echo_summary(result)


if __name__ == "__main__":
    match_report()
