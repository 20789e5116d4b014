"""PUBG API Client - HTTP wrapper for the PUBG API with retries and caching.

This module provides the upstream collaborator of the match report pipeline:
- Match lookup (raw JSON:API payload or parsed MatchDocument)
- Player lookup, recent match ids and season stats
- Telemetry download from the CDN
- Retry logic with exponential backoff
- Response caching through an injected ResponseCache
"""

import gzip
import json
import logging
import time
from typing import Any, Dict, List, Optional

import requests
from requests.exceptions import RequestException

from pewstats_match_reports.config.settings import SUPPORTED_PLATFORMS
from pewstats_match_reports.core.models import MatchDocument
from pewstats_match_reports.core.response_cache import ResponseCache
from pewstats_match_reports.metrics import API_REQUESTS
from pewstats_match_reports.processors.match_parser import parse_match_document


logger = logging.getLogger(__name__)


class PUBGAPIError(Exception):
    """Base exception for PUBG API errors."""
    pass


class RateLimitError(PUBGAPIError):
    """Raised when rate limit is exceeded."""
    pass


class NotFoundError(PUBGAPIError):
    """Raised when resource is not found (404)."""
    pass


class FetchError(PUBGAPIError):
    """Raised on transport failures, timeouts, 5xx responses or invalid JSON."""
    pass


class TelemetryUnavailableError(PUBGAPIError):
    """Raised when a match has no telemetry asset or the asset has expired."""
    pass


class PUBGClient:
    """Client for the PUBG API.

    Example:
        >>> client = PUBGClient("api-key", platform="steam", cache=ResponseCache())
        >>> match = client.fetch_match("a1b2c3d4-...")
        >>> events = client.get_telemetry(match)
    """

    BASE_URL = "https://api.pubg.com/shards"
    CONTENT_TYPE = "application/vnd.api+json"

    def __init__(
        self,
        api_key: str,
        platform: str = "steam",
        max_retries: int = 3,
        timeout: int = 30,
        cache: Optional[ResponseCache] = None,
    ):
        """Initialize PUBG API client.

        Args:
            api_key: PUBG developer API key
            platform: Default shard (default: "steam")
            max_retries: Maximum number of retry attempts (default: 3)
            timeout: Request timeout in seconds, also bounds telemetry downloads (default: 30)
            cache: Optional response cache shared between requests
        """
        if not api_key:
            raise ValueError("api_key cannot be empty")

        self.api_key = api_key
        self.platform = self._validate_platform(platform)
        self.max_retries = max_retries
        self.timeout = timeout
        self.cache = cache

        logger.info(f"Initialized PUBGClient for platform '{platform}'")

    def get_match(self, match_id: str, platform: Optional[str] = None) -> Dict[str, Any]:
        """Get raw match data for a specific match.

        Args:
            match_id: Match UUID
            platform: Shard override

        Returns:
            Parsed JSON response from PUBG API

        Raises:
            ValueError: If match_id is empty or platform unsupported
            NotFoundError: If match not found
            FetchError: If the request keeps failing
        """
        match_id = (match_id or "").strip()
        if not match_id:
            raise ValueError("match_id cannot be empty")

        shard = self._validate_platform(platform or self.platform)
        cache_key = f"match_{shard}_{match_id}"
        cached = self._get_cached(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for match {match_id}")
            return cached

        logger.debug(f"Fetching match data for {match_id}")
        result = self._make_request(f"/matches/{match_id}", shard, endpoint_label="match")
        self._set_cached(cache_key, result)
        return result

    def fetch_match(self, match_id: str, platform: Optional[str] = None) -> MatchDocument:
        """Get a match and parse it into a MatchDocument."""
        return parse_match_document(self.get_match(match_id, platform))

    def get_player(self, player_name: str, platform: Optional[str] = None) -> Dict[str, Any]:
        """Get player data (including recent match references) by display name.

        Raises:
            ValueError: If player_name is empty
            NotFoundError: If no such player exists on the shard
        """
        player_name = (player_name or "").strip()
        if not player_name:
            raise ValueError("player_name cannot be empty")

        shard = self._validate_platform(platform or self.platform)
        cache_key = f"player_{shard}_{player_name}"
        cached = self._get_cached(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for player {player_name}")
            return cached

        params = {"filter[playerNames]": player_name}
        result = self._make_request("/players", shard, params=params, endpoint_label="player")
        self._set_cached(cache_key, result)
        return result

    def get_player_match_ids(self, player_name: str, platform: Optional[str] = None) -> List[str]:
        """Get a player's recent match ids, most recent first.

        Returns:
            List of match ids (empty if the player has no recent matches)
        """
        player_data = self.get_player(player_name, platform)
        players = player_data.get("data") or []
        if not players:
            raise NotFoundError(f"Player not found: {player_name}")

        matches = players[0].get("relationships", {}).get("matches", {}).get("data") or []
        match_ids = [match["id"] for match in matches if match.get("id")]
        logger.debug(f"Player '{player_name}' has {len(match_ids)} recent matches")
        return match_ids

    def get_current_season(self, platform: Optional[str] = None) -> Dict[str, Any]:
        """Get the season flagged isCurrentSeason on a shard.

        Returns:
            Season resource ({"type": "season", "id": ..., "attributes": {...}})

        Raises:
            NotFoundError: If the shard lists no current season
        """
        shard = self._validate_platform(platform or self.platform)
        cache_key = f"seasons_{shard}"
        seasons = self._get_cached(cache_key)
        if seasons is None:
            seasons = self._make_request("/seasons", shard, endpoint_label="seasons")
            self._set_cached(cache_key, seasons)

        for season in seasons.get("data") or []:
            if (season.get("attributes") or {}).get("isCurrentSeason"):
                logger.debug(f"Current season on {shard}: {season.get('id')}")
                return season

        raise NotFoundError(f"No current season on shard {shard}")

    def get_player_season_stats(
        self, account_id: str, season_id: str, platform: Optional[str] = None
    ) -> Dict[str, Any]:
        """Get a player's stats for one season.

        Args:
            account_id: Player account id ("account.xxx")
            season_id: Season id (e.g. "division.bro.official.pc-2018-30")
            platform: Shard override

        Returns:
            Raw playerSeason payload (data.attributes.gameModeStats per mode)
        """
        if not account_id or not season_id:
            raise ValueError("account_id and season_id cannot be empty")

        shard = self._validate_platform(platform or self.platform)
        cache_key = f"season_stats_{shard}_{account_id}_{season_id}"
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        result = self._make_request(
            f"/players/{account_id}/seasons/{season_id}", shard, endpoint_label="season_stats"
        )
        self._set_cached(cache_key, result)
        return result

    def get_telemetry(self, match_document: MatchDocument) -> List[Dict[str, Any]]:
        """Download the telemetry event list for a match.

        The CDN does not take the API key. Payloads may arrive gzip-compressed
        without a Content-Encoding header, so the gzip magic number is checked.

        Args:
            match_document: Parsed match with a resolved telemetry URL

        Returns:
            List of raw telemetry event dicts in file order

        Raises:
            TelemetryUnavailableError: If the match has no telemetry, or the CDN
                reports it missing (403/404)
            FetchError: If the download is rejected, keeps failing or is not a JSON list
        """
        url = match_document.telemetry_url
        if not url:
            raise TelemetryUnavailableError(
                f"Match {match_document.match_id} has no telemetry asset"
            )

        cached = self._get_cached(url)
        if cached is not None:
            logger.debug(f"Cache hit for telemetry of match {match_document.match_id}")
            return cached

        response = self._get_with_retries(
            url,
            headers={"Accept-Encoding": "gzip"},
            endpoint_label="telemetry",
        )

        if response.status_code in (403, 404):
            API_REQUESTS.labels(endpoint="telemetry", status="not_found").inc()
            raise TelemetryUnavailableError(
                f"Telemetry for match {match_document.match_id} is no longer available "
                f"(HTTP {response.status_code})"
            )
        if response.status_code == 401:
            API_REQUESTS.labels(endpoint="telemetry", status="error").inc()
            raise FetchError(f"Telemetry download for match {match_document.match_id} was rejected (HTTP 401)")

        events = self._decode_telemetry(response.content)
        API_REQUESTS.labels(endpoint="telemetry", status="success").inc()
        logger.debug(f"Downloaded {len(events)} telemetry events for match {match_document.match_id}")

        self._set_cached(url, events)
        return events

    def _decode_telemetry(self, content: bytes) -> List[Dict[str, Any]]:
        if content[:2] == b"\x1f\x8b":
            try:
                content = gzip.decompress(content)
            except OSError as e:
                raise FetchError(f"Corrupt gzip telemetry payload: {e}") from e

        try:
            events = json.loads(content)
        except ValueError as e:
            raise FetchError(f"Invalid telemetry JSON: {e}") from e

        if not isinstance(events, list):
            raise FetchError(f"Telemetry payload is not an event list: {type(events).__name__}")
        return events

    def _make_request(
        self,
        endpoint: str,
        platform: str,
        params: Optional[Dict[str, str]] = None,
        endpoint_label: str = "api",
    ) -> Dict[str, Any]:
        """Make an authenticated API request.

        Args:
            endpoint: API endpoint (e.g., "/players")
            platform: Shard to query
            params: Query parameters
            endpoint_label: Metrics label for the endpoint

        Returns:
            Parsed JSON response
        """
        url = f"{self.BASE_URL}/{platform}{endpoint}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": self.CONTENT_TYPE,
        }

        response = self._get_with_retries(url, headers, params, endpoint_label)

        if response.status_code == 404:
            API_REQUESTS.labels(endpoint=endpoint_label, status="not_found").inc()
            raise NotFoundError(f"Resource not found: {endpoint}")

        if response.status_code in (401, 403):
            API_REQUESTS.labels(endpoint=endpoint_label, status="unauthorized").inc()
            raise PUBGAPIError(f"API key rejected (HTTP {response.status_code})")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON response from {endpoint}: {e}")
            raise FetchError(f"Invalid JSON response: {e}") from e

        if isinstance(data, dict) and "errors" in data:
            error_detail = data["errors"][0].get("detail", "Unknown error")
            raise PUBGAPIError(f"API error: {error_detail}")

        API_REQUESTS.labels(endpoint=endpoint_label, status="success").inc()
        return data

    def _get_with_retries(
        self,
        url: str,
        headers: Dict[str, str],
        params: Optional[Dict[str, str]] = None,
        endpoint_label: str = "api",
        retry_count: int = 0,
    ) -> requests.Response:
        """GET with exponential backoff.

        404, 403 and 401 responses are returned to the caller untouched;
        429 and transport/5xx failures are retried. Any other 4xx fails at once.

        Raises:
            RateLimitError: If still rate limited after all retries
            FetchError: On another 4xx response, or if the request fails after all retries
        """
        try:
            logger.debug(f"GET {url}")
            response = requests.get(url, headers=headers, params=params, timeout=self.timeout)

            if response.status_code in (401, 403, 404):
                return response

            if response.status_code == 429:
                logger.warning(f"Rate limit hit (429) on {endpoint_label}")
                API_REQUESTS.labels(endpoint=endpoint_label, status="rate_limited").inc()
                if retry_count >= self.max_retries:
                    raise RateLimitError(f"Rate limit exceeded after {self.max_retries} retries")
                self._backoff(endpoint_label, retry_count)
                return self._get_with_retries(url, headers, params, endpoint_label, retry_count + 1)

            if 400 <= response.status_code < 500:
                API_REQUESTS.labels(endpoint=endpoint_label, status="error").inc()
                raise FetchError(f"Request to {endpoint_label} rejected (HTTP {response.status_code})")

            response.raise_for_status()
            return response

        except RequestException as e:
            logger.error(f"Request error on {endpoint_label}: {e}")
            API_REQUESTS.labels(endpoint=endpoint_label, status="error").inc()
            if retry_count >= self.max_retries:
                raise FetchError(f"Request failed after {self.max_retries} retries: {e}") from e
            self._backoff(endpoint_label, retry_count)
            return self._get_with_retries(url, headers, params, endpoint_label, retry_count + 1)

    def _backoff(self, endpoint_label: str, retry_count: int) -> None:
        # Exponential backoff: 2^retry seconds
        wait_time = 2 ** retry_count
        logger.info(
            f"Retrying {endpoint_label} in {wait_time}s (attempt {retry_count + 1}/{self.max_retries})"
        )
        time.sleep(wait_time)

    def _get_cached(self, cache_key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        return self.cache.get(cache_key)

    def _set_cached(self, cache_key: str, data: Any) -> None:
        if self.cache is not None:
            self.cache.set(cache_key, data)

    @staticmethod
    def _validate_platform(platform: str) -> str:
        if platform not in SUPPORTED_PLATFORMS:
            raise ValueError(
                f"Unsupported platform '{platform}', expected one of: {', '.join(SUPPORTED_PLATFORMS)}"
            )
        return platform
