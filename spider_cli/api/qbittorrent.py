"""
Async client for the qBittorrent Web API, used to deliver resolved links as
new download jobs.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from spider_cli import __version__
from spider_cli.exceptions import AuthRejectedError, SubmitError, TransportError
from spider_cli.models.config import QBFetcherConfig
from spider_cli.models.outcome import DeliveryResult, FailureReason

from .auth import Session, SessionManager

log = logging.getLogger(__name__)

_AUTH_REJECTED_STATUSES = (401, 403)
# Duplicate adds: qBittorrent 5 answers 409, 4.x answers 200 "Fails.".
_ALREADY_EXISTS_STATUS = 409


class QBittorrentClient:
    """
    Delivers links to a qBittorrent instance.

    Features:
    - Lazy login, only when a username is configured
    - One shared session per client with single-flight renewal
    - A single re-login and re-submit when the session expires mid-run
    - Duplicate submissions reported as success
    """

    def __init__(self, config: QBFetcherConfig, timeout: float = 30.0):
        """
        Initializes the client.

        Args:
            config: The validated `qbfetcher` configuration.
            timeout: Total timeout in seconds for each HTTP request.
        """
        self.config = config
        self.timeout = timeout
        self.base_url = config.url.rstrip("/")

        self._http: Optional[aiohttp.ClientSession] = None
        self._sessions = SessionManager(self)

    @property
    def sessions(self) -> SessionManager:
        """Provides access to the session manager."""
        return self._sessions

    @property
    def login_endpoint(self) -> str:
        return f"{self.base_url}{self.config.login_url}"

    @property
    def add_endpoint(self) -> str:
        return f"{self.base_url}{self.config.add_url}"

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession(
                # Cookies are carried explicitly by `Session`, never by the jar.
                cookie_jar=aiohttp.DummyCookieJar(),
                headers={
                    "User-Agent": f"spider-cli/{__version__}",
                    "Referer": self.base_url,
                },
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._http and not self._http.closed:
            await self._http.close()

    async def __aenter__(self) -> "QBittorrentClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def login(self) -> Session:
        """
        Posts the configured credentials.

        Returns:
            A new session carrying the cookies set by the service.

        Raises:
            AuthRejectedError: If the credentials are refused.
            TransportError: On network errors or unexpected statuses.
        """
        await self._initialize_session()
        log.info(f"Logging in to {self.base_url} as: {self.config.username}")
        payload = {"username": self.config.username, "password": self.config.password}
        try:
            async with self._http.post(self.login_endpoint, data=payload) as r:
                body = (await r.text()).strip()
                if r.status in _AUTH_REJECTED_STATUSES:
                    raise AuthRejectedError(f"Login refused with HTTP {r.status}.")
                r.raise_for_status()
                # qBittorrent returns "Ok." on success and "Fails." otherwise.
                if "ok" not in body.lower():
                    raise AuthRejectedError("Invalid username or password.")
                cookies = {name: morsel.value for name, morsel in r.cookies.items()}
        except aiohttp.ClientResponseError as e:
            raise TransportError(f"Login failed with HTTP {e.status}") from e
        except asyncio.TimeoutError as e:
            raise TransportError("Login request timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Login request failed: {e}") from e

        log.debug(f"Login succeeded, {len(cookies)} cookie(s) captured.")
        return Session(cookies=cookies)

    async def submit(
        self, link: str, save_path: str, session: Optional[Session] = None
    ) -> DeliveryResult:
        """
        Adds a link as a new download job.

        Raises:
            AuthRejectedError: If the service refuses the session.
            SubmitError: If the service refuses the job for another reason.
            TransportError: On network errors or timeouts.
        """
        await self._initialize_session()
        headers = {}
        if session and session.cookies:
            headers["Cookie"] = session.cookie_header()
        payload = {"urls": link, "savepath": save_path}

        try:
            async with self._http.post(
                self.add_endpoint, data=payload, headers=headers
            ) as r:
                body = (await r.text()).strip()
                status = r.status
        except asyncio.TimeoutError as e:
            raise TransportError("Submit request timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Submit request failed: {e}") from e

        if status in _AUTH_REJECTED_STATUSES:
            raise AuthRejectedError(f"Submit refused with HTTP {status}.")
        if status == _ALREADY_EXISTS_STATUS or (
            status == 200 and body.lower().startswith("fails")
        ):
            log.debug(f"Job for {link[:40]}... already exists.")
            return DeliveryResult.ok(already_existed=True)
        if status == 200 and body.lower().startswith("ok"):
            return DeliveryResult.ok()
        raise SubmitError(f"HTTP {status}: {body[:200] or 'empty response'}")

    async def deliver(self, link: str, title: str) -> DeliveryResult:
        """
        Authenticates if needed and submits `link`, saving under
        ``save_path + title``.

        Never raises for delivery problems; they are returned as a failed
        `DeliveryResult` with the reason and cause.
        """
        save_path = f"{self.config.save_path}{title}"
        try:
            session = None
            if self.config.requires_login:
                session = await self._sessions.get_session()
            try:
                return await self.submit(link, save_path, session)
            except AuthRejectedError:
                if not self.config.requires_login:
                    raise
                session = await self._sessions.renew(session)
                return await self.submit(link, save_path, session)
        except AuthRejectedError as e:
            return DeliveryResult.failed(FailureReason.AUTH_REJECTED, str(e))
        except SubmitError as e:
            return DeliveryResult.failed(FailureReason.SUBMIT_ERROR, str(e))
        except TransportError as e:
            return DeliveryResult.failed(FailureReason.TRANSPORT_ERROR, str(e))
