"""
Prometheus metrics for the match report pipeline
"""

from prometheus_client import Counter, Histogram, Info, start_http_server
import logging

logger = logging.getLogger(__name__)

# Pipeline metrics
PIPELINE_RUNS = Counter(
    "pipeline_runs_total",
    "Total match report pipeline runs",
    ["status"],  # ok, degraded, match_not_found, player_not_in_match, failed
)

PIPELINE_DURATION = Histogram(
    "pipeline_duration_seconds",
    "Time to build a match report (fetch + replay + aggregate)",
    buckets=[0.5, 1, 2, 5, 10, 30, 60],
)

# Telemetry replay metrics
TELEMETRY_REPLAYS = Counter(
    "telemetry_replays_total",
    "Total telemetry replays",
    ["status"],  # success, unavailable
)

TELEMETRY_REPLAY_DURATION = Histogram(
    "telemetry_replay_duration_seconds",
    "Time to replay a telemetry event stream for one player",
    buckets=[0.01, 0.05, 0.1, 0.5, 1, 2, 5],
)

TELEMETRY_EVENTS_SKIPPED = Counter(
    "telemetry_events_skipped_total",
    "Telemetry events skipped because they were malformed",
)

# PUBG API
API_REQUESTS = Counter(
    "pubg_api_requests_total",
    "Total PUBG API requests",
    ["endpoint", "status"],  # endpoint: match, player, telemetry
)

CACHE_LOOKUPS = Counter(
    "response_cache_lookups_total",
    "Response cache lookups",
    ["result"],  # hit, miss, expired
)

# Chat commands
CHAT_COMMANDS = Counter(
    "chat_commands_total",
    "Chat commands handled",
    ["command", "status"],  # status: success, cooldown, invalid, failed
)

# Errors
WORKER_INFO = Info("worker", "Worker information")

WORKER_ERRORS = Counter("worker_errors_total", "Total errors", ["component", "error_type"])


def start_metrics_server(port: int = 9090, worker_name: str = "unknown"):
    """
    Start the Prometheus metrics HTTP server

    Args:
        port: Port to expose metrics on
        worker_name: Name of the process for logging and info metric
    """
    try:
        WORKER_INFO.info({"worker_name": worker_name, "metrics_port": str(port)})
        start_http_server(port)
        logger.info(f"Metrics server started on port {port} for worker: {worker_name}")
    except OSError as e:
        if e.errno == 98:  # Address already in use
            logger.warning(f"Metrics server port {port} already in use, skipping startup")
        else:
            logger.error(f"Failed to start metrics server on port {port}: {e}")
            raise
