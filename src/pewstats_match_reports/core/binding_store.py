"""Chat user to PUBG player bindings, persisted as a JSON file.

File format (keyed by chat user id):

    {"12345": {"name": "PlayerName", "platform": "steam", "bound_at": "2024-01-01T12:00:00+00:00"}}
"""

import json
import logging
import os
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from pewstats_match_reports.config.settings import SUPPORTED_PLATFORMS


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binding:
    player_name: str
    platform: str
    bound_at: Optional[str] = None


class BindingStore:
    """Key-value store of user bindings backed by a JSON file.

    The file is read lazily on first access and rewritten on every change.
    The in-memory map only changes once the new file is in place.
    A missing file means no bindings; an unreadable or corrupt file is logged
    and treated as empty.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._bindings: Optional[Dict[str, Binding]] = None

    def get(self, user_id: str) -> Optional[Binding]:
        with self._lock:
            return self._load().get(str(user_id))

    def bind(self, user_id: str, player_name: str, platform: str) -> Binding:
        """Bind a chat user to a player, replacing any existing binding.

        Raises:
            ValueError: If player_name is empty or platform is unsupported
        """
        player_name = (player_name or "").strip()
        if not player_name:
            raise ValueError("player_name cannot be empty")
        if platform not in SUPPORTED_PLATFORMS:
            raise ValueError(f"Unsupported platform '{platform}'")

        binding = Binding(
            player_name=player_name,
            platform=platform,
            bound_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        with self._lock:
            bindings = dict(self._load())
            bindings[str(user_id)] = binding
            self._save(bindings)
            self._bindings = bindings

        logger.info(f"Bound user {user_id} to {player_name} ({platform})")
        return binding

    def unbind(self, user_id: str) -> bool:
        """Remove a binding.

        Returns:
            True if a binding existed and was removed
        """
        with self._lock:
            bindings = dict(self._load())
            if bindings.pop(str(user_id), None) is None:
                return False
            self._save(bindings)
            self._bindings = bindings

        logger.info(f"Unbound user {user_id}")
        return True

    def _load(self) -> Dict[str, Binding]:
        if self._bindings is not None:
            return self._bindings

        self._bindings = {}
        if not os.path.exists(self.path):
            return self._bindings

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read bindings file {self.path}: {e}")
            return self._bindings

        if not isinstance(raw, dict):
            logger.error(f"Bindings file {self.path} is not a JSON object, ignoring it")
            return self._bindings

        for user_id, entry in raw.items():
            if not isinstance(entry, dict) or not entry.get("name"):
                logger.warning(f"Skipping invalid binding for user {user_id}")
                continue
            self._bindings[user_id] = Binding(
                player_name=entry["name"],
                platform=entry.get("platform") or "steam",
                bound_at=entry.get("bound_at"),
            )

        logger.debug(f"Loaded {len(self._bindings)} bindings from {self.path}")
        return self._bindings

    def _save(self, bindings: Dict[str, Binding]) -> None:
        payload = {
            user_id: {
                "name": binding.player_name,
                "platform": binding.platform,
                "bound_at": binding.bound_at,
            }
            for user_id, binding in bindings.items()
        }
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
