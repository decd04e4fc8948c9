# mailgate/session.py
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Set, TypeVar

from loguru import logger

from mailgate.auth import PasswordAuth
from mailgate.config import IMAPConfig, MailboxConfig, SMTPConfig
from mailgate.errors import AuthError, MailgateError
from mailgate.imap import IMAPClient
from mailgate.smtp import SMTPClient

T = TypeVar("T")

DEFAULT_FOLDER = "INBOX"

IMAPFactory = Callable[[IMAPConfig, PasswordAuth], IMAPClient]
SMTPFactory = Callable[[SMTPConfig, PasswordAuth], SMTPClient]


def _connect_imap(config: IMAPConfig, credentials: PasswordAuth) -> IMAPClient:
    return IMAPClient.from_config(config).connect(credentials)


def _create_smtp(config: SMTPConfig, credentials: PasswordAuth) -> SMTPClient:
    return SMTPClient.from_config(config, auth=credentials)


@dataclass(frozen=True)
class SessionResult:
    ok: bool
    created: bool = False
    error: Optional[MailgateError] = None


class MailSession:
    """
    The one mailbox session of the process: at most one IMAP connection and
    one outbound client, created together on first authentication and
    dropped together by `invalidate()`.

    Protocol round-trips run on a single worker thread so commands never
    interleave on the socket; parsing and SMTP sends use a separate pool.
    There is no request-level locking: two requests that select different
    folders can still interleave between their round-trips.
    """

    def __init__(
        self,
        config: MailboxConfig,
        *,
        imap_factory: IMAPFactory = _connect_imap,
        smtp_factory: SMTPFactory = _create_smtp,
    ) -> None:
        self.config = config
        self._imap_factory = imap_factory
        self._smtp_factory = smtp_factory

        self._imap: Optional[IMAPClient] = None
        self._smtp: Optional[SMTPClient] = None
        self.user: Optional[str] = None
        self.selected_folder: str = DEFAULT_FOLDER

        self._protocol_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mailgate-imap")
        self._worker_executor = ThreadPoolExecutor(
            max_workers=config.parse_workers, thread_name_prefix="mailgate-worker"
        )
        # guards handle creation and teardown only; requests are not serialised
        self._handles_lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    # -----------------------
    # Executors
    # -----------------------

    async def run_protocol(self, fn: Callable[..., T], *args, **kwargs) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._protocol_executor, lambda: fn(*args, **kwargs))

    async def run_blocking(self, fn: Callable[..., T], *args, **kwargs) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._worker_executor, lambda: fn(*args, **kwargs))

    # -----------------------
    # Lifecycle
    # -----------------------

    @property
    def is_authenticated(self) -> bool:
        return self._imap is not None and self._imap.state in ("authenticated", "selected")

    async def ensure(self, credentials: Optional[PasswordAuth]) -> SessionResult:
        """
        Create whichever of the two handles is missing. An existing connection
        is reused as-is, even for different credentials.
        """
        if credentials is None or not credentials.username or not credentials.password:
            return SessionResult(ok=False, error=AuthError("You are not authenticated"))

        async with self._handles_lock:
            return await self._create_missing(credentials)

    async def _create_missing(self, credentials: PasswordAuth) -> SessionResult:
        created = False
        if self._imap is None:
            try:
                self._imap = await self.run_protocol(self._imap_factory, self.config.imap, credentials)
            except MailgateError as e:
                logger.warning(f"IMAP authentication failed for {credentials.username!r}: {e}")
                return SessionResult(ok=False, error=e)
            self.user = credentials.username
            self.selected_folder = DEFAULT_FOLDER
            created = True

        if self._smtp is None:
            try:
                self._smtp = self._smtp_factory(self.config.smtp, credentials)
            except MailgateError as e:
                logger.warning(f"SMTP client setup failed for {credentials.username!r}: {e}")
                await self._drop_imap()
                return SessionResult(ok=False, error=e)

        return SessionResult(ok=True, created=created)

    async def acquire_connection(self) -> IMAPClient:
        """Return the live connection, closing any open folder selection first."""
        imap = self._imap
        if imap is None:
            raise AuthError("No mailbox session")
        if imap.state == "selected":
            try:
                await self.run_protocol(imap.close_folder)
            except MailgateError as e:
                logger.warning(f"Closing folder {imap.selected_folder!r} failed: {e}")
        return imap

    def acquire_outbound(self) -> SMTPClient:
        if self._smtp is None:
            raise AuthError("No outbound mail client")
        return self._smtp

    async def _drop_imap(self) -> None:
        imap, self._imap = self._imap, None
        self.user = None
        self.selected_folder = DEFAULT_FOLDER
        if imap is not None:
            await self.run_protocol(imap.logout)

    async def invalidate(self) -> None:
        async with self._handles_lock:
            smtp, self._smtp = self._smtp, None
            await self._drop_imap()
            if smtp is not None:
                smtp.close()
        logger.info("Mailbox session invalidated")

    # -----------------------
    # Best-effort background work
    # -----------------------

    def spawn(self, job: Callable[[], Awaitable[None]], *, what: str) -> asyncio.Task:
        """
        Run `job` after the response has been produced. Failures are logged
        and never reach the caller.
        """
        async def _runner() -> None:
            try:
                await job()
            except Exception:
                logger.exception(f"Background {what} failed")

        task = asyncio.get_running_loop().create_task(_runner())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled background job."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.invalidate()
        self._protocol_executor.shutdown(wait=False)
        self._worker_executor.shutdown(wait=False)
