# session.py
"""
What the engine needs from the login layer: the bearer token, the viewer's
profile, and a way to say "end this session".
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from schemas import UserProfile

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, token: Optional[str] = None, user: Optional[UserProfile] = None):
        self.token = token
        self.user = user
        self._listeners: List[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        return bool(self.token) and self.user is not None

    @property
    def time_zone_id(self) -> Optional[str]:
        return self.user.time_zone_id if self.user else None

    def on_end(self, fn: Callable[[], None]) -> None:
        self._listeners.append(fn)

    def off_end(self, fn: Callable[[], None]) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def end(self) -> None:
        if self.token is None and self.user is None:
            return
        logger.info("ending session for %s", getattr(self.user, "username", None))
        self.token = None
        self.user = None
        for fn in list(self._listeners):
            fn()
