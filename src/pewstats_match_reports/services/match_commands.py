"""Chat commands for match reports, player bindings and match lookups.

Messages arrive as CommandContext (user id + raw text), so the handler does
not depend on any chat platform's message type. Commands, after the
configured prefix (default "#pubg"):

    比赛详情 / details   [<matchId>] [<name> [platform]]   player match report
    查询比赛 / match     <matchId> [platform]              whole-match overview
    最近比赛 / recent    [<name> [platform]]               recent matches list
    绑定 / bind          <name> [platform]                 bind chat user to player
    解绑 / unbind                                          remove binding
    我的信息 / me                                          show binding
    查询 / player        [<name> [platform]]               current season stats
    帮助 / help                                           list commands
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from pewstats_match_reports.config.settings import SUPPORTED_PLATFORMS, Settings
from pewstats_match_reports.core.binding_store import Binding, BindingStore
from pewstats_match_reports.core.cooldown_tracker import CooldownTracker
from pewstats_match_reports.core.pubg_client import (
    FetchError,
    NotFoundError,
    PUBGAPIError,
    PUBGClient,
    RateLimitError,
)
from pewstats_match_reports.metrics import CHAT_COMMANDS, WORKER_ERRORS
from pewstats_match_reports.processors import find_participant, summarize_match, summarize_season
from pewstats_match_reports.processors.view_model_adapter import (
    format_date,
    get_game_mode,
    get_map_name,
)
from pewstats_match_reports.services.match_report_service import MatchReportService
from pewstats_match_reports.services.text_report import (
    render_match_overview,
    render_match_report,
    render_season_stats,
)


MATCH_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

# command -> aliases accepted after the prefix
COMMAND_ALIASES: Dict[str, Tuple[str, ...]] = {
    "details": ("比赛详情", "details"),
    "match": ("查询比赛", "match"),
    "recent": ("最近比赛", "recent"),
    "bind": ("绑定", "bind"),
    "unbind": ("解绑", "unbind"),
    "me": ("我的信息", "me"),
    "player": ("查询", "player"),
    "help": ("帮助", "help"),
}

# Commands that hit the PUBG API and are subject to the per-user cooldown
COOLDOWN_COMMANDS = {"details", "match", "recent", "player"}

# (command, arguments, description) lines of the help reply
HELP_LINES: Tuple[Tuple[str, str, str], ...] = (
    ("details", "[<matchId>] [<name> [platform]]", "player report for a match, latest by default"),
    ("match", "<matchId> [platform]", "winners and kill ranking of a match"),
    ("recent", "[<name> [platform]]", "recent matches of a player"),
    ("player", "[<name> [platform]]", "current season stats of a player"),
    ("bind", "<name> [platform]", "bind your chat account to a PUBG player"),
    ("unbind", "", "remove your binding"),
    ("me", "", "show your binding"),
    ("help", "", "show this help"),
)


@dataclass(frozen=True)
class CommandContext:
    user_id: str
    message: str
    sender_name: Optional[str] = None


@dataclass(frozen=True)
class CommandReply:
    text: str
    view_model: Optional[Dict[str, Any]] = None


def parse_command(message: str, prefix: str) -> Optional[Tuple[str, str]]:
    """
    Split a chat message into (command, argument).

    Args:
        message: Raw message text
        prefix: Command prefix (e.g. "#pubg"), matched case-insensitively

    Returns:
        (command name, argument string), or None if the message is not a command
    """
    text = (message or "").strip()
    if not prefix or not text.casefold().startswith(prefix.casefold()):
        return None

    rest = text[len(prefix):].lstrip()
    folded = rest.casefold()

    aliases = [(alias, command) for command, names in COMMAND_ALIASES.items() for alias in names]
    # Longest alias first so "me" never shadows a longer English alias
    for alias, command in sorted(aliases, key=lambda item: -len(item[0])):
        if not folded.startswith(alias):
            continue
        tail = rest[len(alias):]
        # ASCII aliases must end at a word boundary ("metrics" is not "me")
        if alias.isascii() and tail and not tail[0].isspace():
            continue
        return command, tail.strip()

    return None


def parse_player_argument(
    argument: str, binding: Optional[Binding], default_platform: str
) -> Optional[Tuple[str, str]]:
    """
    Resolve "<name> [platform]" into (player_name, platform).

    An empty argument falls back to the user's binding. A name without a
    platform uses the bound platform, else the default one.

    Returns:
        (player_name, platform), or None if nothing usable was given or the
        platform is not supported
    """
    parts = (argument or "").split()
    if not parts:
        if binding is None:
            return None
        return binding.player_name, binding.platform

    player_name = parts[0]
    if len(parts) >= 2:
        platform = parts[1].lower()
        if platform not in SUPPORTED_PLATFORMS:
            return None
    else:
        platform = binding.platform if binding else default_platform

    return player_name, platform


class MatchCommandHandler:
    """Dispatches chat commands to the match report pipeline.

    Example:
        >>> handler = MatchCommandHandler(settings, client, bindings, cooldowns, service)
        >>> reply = handler.handle(CommandContext(user_id="42", message="#pubg details"))
        >>> print(reply.text)
    """

    def __init__(
        self,
        settings: Settings,
        pubg_client: PUBGClient,
        bindings: BindingStore,
        cooldowns: CooldownTracker,
        service: MatchReportService,
        logger: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.pubg_client = pubg_client
        self.bindings = bindings
        self.cooldowns = cooldowns
        self.service = service
        self.logger = logger or logging.getLogger(__name__)

        self._handlers: Dict[str, Callable[[CommandContext, str], CommandReply]] = {
            "details": self._match_details,
            "match": self._match_overview,
            "recent": self._recent_matches,
            "bind": self._bind,
            "unbind": self._unbind,
            "me": self._my_info,
            "player": self._player_stats,
            "help": self._help,
        }

    def handle(self, ctx: CommandContext) -> Optional[CommandReply]:
        """
        Handle one chat message.

        Returns:
            CommandReply, or None if the message is not one of our commands
        """
        parsed = parse_command(ctx.message, self.settings.cmd_prefix)
        if parsed is None:
            return None

        command, argument = parsed
        self.logger.debug(f"User {ctx.user_id} ran '{command}' with argument '{argument}'")

        if command in COOLDOWN_COMMANDS:
            remaining = self.cooldowns.check(str(ctx.user_id))
            if remaining > 0:
                CHAT_COMMANDS.labels(command=command, status="cooldown").inc()
                return CommandReply(f"Too many requests, please try again in {remaining}s")

        try:
            reply = self._handlers[command](ctx, argument)
            CHAT_COMMANDS.labels(command=command, status="success").inc()
            return reply

        except NotFoundError as e:
            CHAT_COMMANDS.labels(command=command, status="not_found").inc()
            self.logger.info(f"'{command}' lookup found nothing: {e}")
            return CommandReply("Not found, please check the player name / match id and platform")

        except (FetchError, RateLimitError) as e:
            CHAT_COMMANDS.labels(command=command, status="failed").inc()
            WORKER_ERRORS.labels(component="chat_commands", error_type=type(e).__name__).inc()
            self.logger.error(f"'{command}' failed talking to the PUBG API: {e}")
            return CommandReply("The PUBG API is not responding, please try again later")

        except PUBGAPIError as e:
            CHAT_COMMANDS.labels(command=command, status="failed").inc()
            WORKER_ERRORS.labels(component="chat_commands", error_type=type(e).__name__).inc()
            self.logger.error(f"'{command}' failed: {e}")
            return CommandReply(f"Query failed: {e}")

        except ValueError as e:
            CHAT_COMMANDS.labels(command=command, status="invalid").inc()
            return CommandReply(f"Invalid input: {e}")

    def _usage(self, command: str, arguments: str) -> CommandReply:
        alias = COMMAND_ALIASES[command][1]
        return CommandReply(f"Usage: {self.settings.cmd_prefix} {alias} {arguments}".rstrip())

    def _resolve_player(self, ctx: CommandContext, argument: str) -> Optional[Tuple[str, str]]:
        binding = self.bindings.get(str(ctx.user_id))
        return parse_player_argument(argument, binding, self.settings.default_platform)

    def _match_details(self, ctx: CommandContext, argument: str) -> CommandReply:
        parts = argument.split(maxsplit=1)
        match_id = None
        if parts and MATCH_ID_PATTERN.match(parts[0]):
            match_id = parts[0]
            argument = parts[1] if len(parts) > 1 else ""

        player = self._resolve_player(ctx, argument)
        if player is None:
            return self._usage("details", "[<matchId>] <name> [platform], or bind an account first")
        player_name, platform = player

        if match_id is None:
            match_ids = self.pubg_client.get_player_match_ids(player_name, platform)
            if not match_ids:
                return CommandReply(f"Player {player_name} has no recent matches")
            match_id = match_ids[0]

        result = self.service.build_report(match_id, player_name, platform)
        if not result.has_report:
            return CommandReply(result.message)

        return CommandReply(render_match_report(result.view_model), view_model=result.view_model)

    def _match_overview(self, ctx: CommandContext, argument: str) -> CommandReply:
        parts = argument.split()
        if not parts:
            return self._usage("match", "<matchId> [platform]")

        match_id = parts[0]
        platform = parts[1].lower() if len(parts) > 1 else self.settings.default_platform
        if platform not in SUPPORTED_PLATFORMS:
            return self._usage("match", "<matchId> [platform]")

        match_doc = self.pubg_client.fetch_match(match_id, platform)
        overview = summarize_match(match_doc, top_n=5)
        return CommandReply(render_match_overview(overview))

    def _recent_matches(self, ctx: CommandContext, argument: str) -> CommandReply:
        player = self._resolve_player(ctx, argument)
        if player is None:
            return self._usage("recent", "<name> [platform], or bind an account first")
        player_name, platform = player

        match_ids = self.pubg_client.get_player_match_ids(player_name, platform)
        if not match_ids:
            return CommandReply(f"Player {player_name} has no recent matches")

        lines = [f"Recent matches of {player_name} [{platform.upper()}]"]
        for index, match_id in enumerate(match_ids[: self.settings.matches_per_page], start=1):
            lines.append(f"{index}. {self._recent_match_line(match_id, player_name, platform)}")
        return CommandReply("\n".join(lines))

    def _recent_match_line(self, match_id: str, player_name: str, platform: str) -> str:
        try:
            match_doc = self.pubg_client.fetch_match(match_id, platform)
        except (NotFoundError, FetchError) as e:
            self.logger.warning(f"Could not load recent match {match_id}: {e}")
            return f"{match_id}: unavailable"

        line = (
            f"{format_date(match_doc.created_at)} {get_map_name(match_doc.map_id)} "
            f"{get_game_mode(match_doc.game_mode)}"
        )
        participant = find_participant(match_doc, player_name)
        if participant is not None:
            line += (
                f" #{participant.stats.win_place}/{len(match_doc.rosters)}"
                f" {participant.stats.kills} kills {participant.stats.assists} assists"
            )
        return f"{line} ({match_id})"

    def _bind(self, ctx: CommandContext, argument: str) -> CommandReply:
        parts = argument.split()
        if not parts:
            return self._usage("bind", "<name> [platform]")

        player_name = parts[0]
        platform = parts[1].lower() if len(parts) > 1 else self.settings.default_platform
        if platform not in SUPPORTED_PLATFORMS:
            return CommandReply(f"Invalid platform, expected one of: {', '.join(SUPPORTED_PLATFORMS)}")

        # Raises NotFoundError for unknown players
        self.pubg_client.get_player(player_name, platform)

        binding = self.bindings.bind(str(ctx.user_id), player_name, platform)
        return CommandReply(
            f"Bound successfully\nPlayer: {binding.player_name}\nPlatform: {binding.platform.upper()}"
        )

    def _unbind(self, ctx: CommandContext, argument: str) -> CommandReply:
        binding = self.bindings.get(str(ctx.user_id))
        if binding is None or not self.bindings.unbind(str(ctx.user_id)):
            return CommandReply("You have not bound a PUBG account")
        return CommandReply(f"Unbound account {binding.player_name}")

    def _my_info(self, ctx: CommandContext, argument: str) -> CommandReply:
        binding = self.bindings.get(str(ctx.user_id))
        if binding is None:
            return CommandReply(
                f"You have not bound a PUBG account, use {self.settings.cmd_prefix} bind <name> first"
            )

        lines: List[str] = [
            "Your PUBG binding:",
            f"Player: {binding.player_name}",
            f"Platform: {binding.platform.upper()}",
        ]
        if binding.bound_at:
            lines.append(f"Bound at: {binding.bound_at}")
        return CommandReply("\n".join(lines))

    def _player_stats(self, ctx: CommandContext, argument: str) -> CommandReply:
        player = self._resolve_player(ctx, argument)
        if player is None:
            return self._usage("player", "<name> [platform], or bind an account first")
        player_name, platform = player

        players = self.pubg_client.get_player(player_name, platform).get("data") or []
        if not players or not players[0].get("id"):
            raise NotFoundError(f"Player not found: {player_name}")
        account = players[0]

        season = self.pubg_client.get_current_season(platform)
        payload = self.pubg_client.get_player_season_stats(account["id"], season["id"], platform)
        summary = summarize_season(payload, season_id=season["id"])

        name = (account.get("attributes") or {}).get("name") or player_name
        return CommandReply(render_season_stats(name, platform, summary))

    def _help(self, ctx: CommandContext, argument: str) -> CommandReply:
        prefix = self.settings.cmd_prefix
        lines = ["PUBG match reports", ""]
        for command, arguments, description in HELP_LINES:
            native, english = COMMAND_ALIASES[command]
            usage = f"{prefix} {english} {arguments}".rstrip()
            lines.append(f"{usage} ({native}): {description}")
        lines.append("")
        lines.append(f"Platforms: {', '.join(SUPPORTED_PLATFORMS)}")
        return CommandReply("\n".join(lines))
