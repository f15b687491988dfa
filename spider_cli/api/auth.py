"""
Handles session state for the download service: lazy login, single-flight
renewal and invalidation of rejected sessions.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from spider_cli.exceptions import AuthRejectedError

if TYPE_CHECKING:
    from .qbittorrent import QBittorrentClient

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Authentication cookies captured from a successful login."""

    cookies: dict[str, str] = field(default_factory=dict)

    def cookie_header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self.cookies.items())


class SessionManager:
    """
    Owns the one live session of a client.

    Creation and renewal are serialized by a lock so concurrent submits that
    share a client trigger a single login. Once a session exists, callers
    read it without taking the lock.
    """

    def __init__(self, api_client: "QBittorrentClient"):
        """
        Initializes the session manager.

        Args:
            api_client: A reference to the client that performs the login request.
        """
        self._api_client = api_client
        self._session: Optional[Session] = None
        self._rejected: Optional[AuthRejectedError] = None
        self._warned = False
        self._lock = asyncio.Lock()

    @property
    def current(self) -> Optional[Session]:
        return self._session

    async def get_session(self) -> Session:
        """Returns the live session, logging in first if there is none."""
        session = self._session
        if session is not None:
            return session

        async with self._lock:
            if self._session is None:
                self._session = await self._login()
            return self._session

    async def renew(self, stale: Optional[Session]) -> Session:
        """
        Replaces a session the service has rejected.

        If another task already renewed it while we waited for the lock, the
        newer session is returned without logging in again.
        """
        async with self._lock:
            if self._session is None or self._session is stale:
                log.info("Session rejected by the download service, logging in again.")
                self._session = None
                self._session = await self._login()
            return self._session

    async def _login(self) -> Session:
        # Credentials rejected once stay rejected for this run; repeating the
        # login would only get the client banned.
        if self._rejected is not None:
            if not self._warned:
                self._warned = True
                log.warning(
                    "[yellow]Login was refused earlier in this run; skipping further"
                    " login attempts until the next run.[/yellow]"
                )
            raise AuthRejectedError(str(self._rejected))
        try:
            return await self._api_client.login()
        except AuthRejectedError as e:
            self._rejected = e
            raise
