"""Per-login session objects and the registry that owns them.

A session is opened on login, handed to route handlers through FastAPI
dependencies, and torn down on logout together with its cached list views.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from portal.schemas.donation_request import DonationRequest
from portal.services.request_list import ListScreen, RequestListView

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = frozenset({"admin", "volunteer"})


@dataclass
class PortalSession:
    token: str
    email: str
    name: str | None = None
    role: str = "donor"
    expires_at: int | None = None
    views: dict[str, RequestListView] = field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return self.name or self.email

    def expired(self, now: float | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (time.time() if now is None else now) >= self.expires_at

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_volunteer(self) -> bool:
        return self.role == "volunteer"

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    def view(self, screen: ListScreen) -> RequestListView:
        if screen.name not in self.views:
            self.views[screen.name] = RequestListView(screen=screen)
        return self.views[screen.name]

    def find_request(self, request_id: str) -> DonationRequest | None:
        for view in self.views.values():
            record = view.find(request_id)
            if record is not None:
                return record
        return None

    def patch_request(self, request_id: str, changes: dict[str, Any]) -> None:
        for view in self.views.values():
            view.patch(request_id, changes)

    def remove_request(self, request_id: str) -> None:
        for view in self.views.values():
            view.remove(request_id)

    def invalidate(self, screen_name: str) -> None:
        view = self.views.get(screen_name)
        if view is not None:
            view.invalidate()

    def close(self) -> None:
        self.views.clear()


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, PortalSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, session: PortalSession) -> PortalSession:
        self.prune()
        previous = self._sessions.get(session.token)
        if previous is not None:
            previous.close()
        self._sessions[session.token] = session
        logger.info("Session opened for %s (%s)", session.email, session.role)
        return session

    def get(self, token: str) -> PortalSession | None:
        return self._sessions.get(token)

    def close(self, token: str) -> bool:
        session = self._sessions.pop(token, None)
        if session is None:
            return False
        session.close()
        logger.info("Session closed for %s", session.email)
        return True

    def prune(self) -> int:
        """Close every session whose token has expired."""
        now = time.time()
        stale = [t for t, s in self._sessions.items() if s.expired(now)]
        for token in stale:
            self.close(token)
        return len(stale)

    def clear(self) -> None:
        for session in self._sessions.values():
            session.close()
        self._sessions.clear()
