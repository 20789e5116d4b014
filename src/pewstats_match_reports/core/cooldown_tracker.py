"""Per-user command cooldowns."""

import math
import threading
import time
from typing import Callable, Dict


class CooldownTracker:
    """Tracks when each chat user last ran a network-bound command.

    Args:
        cooldown_seconds: Minimum gap between two commands of the same user
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, cooldown_seconds: float = 10, clock: Callable[[], float] = time.monotonic):
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {cooldown_seconds}")

        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_used: Dict[str, float] = {}

    def check(self, user_id: str) -> int:
        """Check the cooldown for a user and record the use when allowed.

        Args:
            user_id: Chat user identifier

        Returns:
            Remaining whole seconds (rounded up), or 0 if the command may run.
            A return of 0 also starts a new cooldown window for the user.
        """
        now = self._clock()
        with self._lock:
            last = self._last_used.get(user_id)
            if last is not None:
                remaining = self.cooldown_seconds - (now - last)
                if remaining > 0:
                    return math.ceil(remaining)

            self._last_used[user_id] = now
            return 0

    def reset(self, user_id: str) -> None:
        with self._lock:
            self._last_used.pop(user_id, None)
