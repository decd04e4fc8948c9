# mailgate/imap/client.py
from __future__ import annotations

import imaplib
import ssl
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Set, TypeVar

from loguru import logger

from mailgate.auth import AuthContext, IMAPAuth
from mailgate.config import IMAPConfig
from mailgate.errors import AuthError, ConfigError, IMAPError
from mailgate.imap.fetch_response import collect_messages
from mailgate.imap.mailbox_list import FolderInfo, parse_list_response
from mailgate.models import FetchedMessage

# RFC 3501 system flags used by the mailbox engines
SEEN = r"\Seen"
DELETED = r"\Deleted"

PROTOCOL_ERRORS = (imaplib.IMAP4.error, OSError, ssl.SSLError)

_STATES = {
    "NONAUTH": "connected",
    "AUTH": "authenticated",
    "SELECTED": "selected",
    "LOGOUT": "logout",
}

T = TypeVar("T")


def _seq_set(seqs: Iterable[int]) -> str:
    return ",".join(str(int(s)) for s in seqs)


@dataclass
class IMAPClient:
    """
    One imaplib connection addressed by message sequence numbers.

    Not thread-safe: callers run every method on the same single worker so
    commands never interleave on the socket.
    """
    config: IMAPConfig

    _conn: Optional[imaplib.IMAP4] = field(default=None, init=False, repr=False)
    selected_folder: Optional[str] = field(default=None, init=False)
    selected_readonly: Optional[bool] = field(default=None, init=False)

    @classmethod
    def from_config(cls, config: IMAPConfig) -> "IMAPClient":
        if not config.host:
            raise ConfigError("IMAP host required")
        if not config.port:
            raise ConfigError("IMAP port required")
        return cls(config)

    # -----------------------
    # Connection management
    # -----------------------

    def connect(self, auth: Optional[IMAPAuth] = None) -> "IMAPClient":
        cfg = self.config
        if auth is None:
            raise ConfigError("IMAP credentials are required to connect")

        logger.info(f"Connecting to IMAP server {cfg.host}:{cfg.port}")
        try:
            conn = (
                imaplib.IMAP4_SSL(cfg.host, cfg.port, timeout=cfg.timeout)
                if cfg.use_ssl
                else imaplib.IMAP4(cfg.host, cfg.port, timeout=cfg.timeout)
            )
        except OSError as e:
            raise AuthError(f"IMAP network error: {e}") from e

        try:
            auth.apply_imap(conn, AuthContext(host=cfg.host, port=cfg.port))
        except Exception:
            try:
                conn.logout()
            except Exception:
                pass
            raise

        self._conn = conn
        logger.info(f"IMAP connection ready for {auth.username!r}")
        return self

    @property
    def state(self) -> str:
        if self._conn is None:
            return "logout"
        return _STATES.get(self._conn.state, "logout")

    def _require_conn(self) -> imaplib.IMAP4:
        if self._conn is None:
            raise IMAPError("IMAP connection is not established")
        return self._conn

    def _run(self, op: Callable[[imaplib.IMAP4], T]) -> T:
        """
        Run a single protocol round-trip. No retries: a failed call surfaces
        to the caller, who retries the whole request.
        """
        conn = self._require_conn()
        try:
            return op(conn)
        except IMAPError:
            raise
        except PROTOCOL_ERRORS as e:
            raise IMAPError(f"IMAP operation failed: {e}") from e

    def logout(self) -> None:
        conn, self._conn = self._conn, None
        self.selected_folder = None
        self.selected_readonly = None
        if conn is None:
            return
        try:
            conn.logout()
        except PROTOCOL_ERRORS as e:
            logger.warning(f"IMAP logout failed: {e}")
        logger.info("IMAP connection ended")

    # -----------------------
    # Folder selection
    # -----------------------

    def _format_mailbox_arg(self, mailbox: str) -> str:
        if mailbox.upper() == "INBOX":
            return "INBOX"
        if mailbox.startswith('"') and mailbox.endswith('"'):
            return mailbox
        escaped = mailbox.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def select(self, folder: str, *, readonly: bool) -> int:
        """SELECT (or EXAMINE when readonly) `folder`; returns its message count."""
        def _impl(conn: imaplib.IMAP4) -> int:
            typ, data = conn.select(self._format_mailbox_arg(folder), readonly=readonly)
            if typ != "OK":
                raise IMAPError(f"select({folder!r}, readonly={readonly}) failed: {data}")
            self.selected_folder = folder
            self.selected_readonly = readonly
            try:
                return int(data[0]) if data and data[0] else 0
            except ValueError:
                return 0

        return self._run(_impl)

    def close_folder(self) -> None:
        """CLOSE the selected folder; the connection stays authenticated."""
        def _impl(conn: imaplib.IMAP4) -> None:
            if conn.state != "SELECTED":
                return
            typ, data = conn.close()
            if typ != "OK":
                raise IMAPError(f"CLOSE failed: {data}")

        self._run(_impl)
        self.selected_folder = None
        self.selected_readonly = None

    # -----------------------
    # Mailboxes
    # -----------------------

    def list_folders(self) -> List[FolderInfo]:
        def _impl(conn: imaplib.IMAP4) -> List[FolderInfo]:
            typ, data = conn.list()
            if typ != "OK":
                raise IMAPError(f"LIST failed: {data}")
            return parse_list_response(data)

        return self._run(_impl)

    # -----------------------
    # SEARCH / FETCH
    # -----------------------

    def search(self, criteria: str = "ALL") -> List[int]:
        """Sequence numbers matching `criteria` in the selected folder."""
        def _impl(conn: imaplib.IMAP4) -> List[int]:
            typ, data = conn.search(None, criteria)
            if typ != "OK":
                raise IMAPError(f"SEARCH failed: {data}")
            raw = (data[0] if data else b"") or b""
            return [int(x) for x in raw.split() if x]

        return self._run(_impl)

    def fetch(self, seqs: Sequence[int]) -> List[FetchedMessage]:
        """
        FETCH flags and the full RFC822 body without setting \\Seen
        (BODY.PEEK[] instead of BODY[]).
        """
        if not seqs:
            return []

        def _impl(conn: imaplib.IMAP4) -> List[FetchedMessage]:
            typ, data = conn.fetch(_seq_set(seqs), "(FLAGS BODY.PEEK[])")
            if typ != "OK":
                raise IMAPError(f"FETCH failed: {data}")
            if not data:
                return []
            return collect_messages(data)

        return self._run(_impl)

    # -----------------------
    # Mutations
    # -----------------------

    def add_flags(self, seq: int, flags: Set[str]) -> None:
        self._store(seq, mode="+FLAGS", flags=flags)

    def remove_flags(self, seq: int, flags: Set[str]) -> None:
        self._store(seq, mode="-FLAGS", flags=flags)

    def _store(self, seq: int, *, mode: str, flags: Set[str]) -> None:
        def _impl(conn: imaplib.IMAP4) -> None:
            flag_list = "(" + " ".join(sorted(flags)) + ")"
            typ, data = conn.store(str(int(seq)), mode, flag_list)
            if typ != "OK":
                raise IMAPError(f"STORE {mode} {flag_list} failed: {data}")

        self._run(_impl)

    def move(self, seq: int, dest: str) -> None:
        def _impl(conn: imaplib.IMAP4) -> None:
            seq_arg = str(int(seq))
            dst_arg = self._format_mailbox_arg(dest)

            try:
                typ, _ = conn.xatom("MOVE", seq_arg, dst_arg)
            except imaplib.IMAP4.error:
                typ = "NO"
            if typ == "OK":
                return

            # RFC 6851 fallback for servers without MOVE
            typ_copy, data_copy = conn.copy(seq_arg, dst_arg)
            if typ_copy != "OK":
                raise IMAPError(f"COPY (for MOVE fallback) failed: {data_copy}")

            typ_store, data_store = conn.store(seq_arg, "+FLAGS.SILENT", r"(\Deleted)")
            if typ_store != "OK":
                raise IMAPError(f"STORE +FLAGS.SILENT \\Deleted failed: {data_store}")

            typ_expunge, data_expunge = conn.expunge()
            if typ_expunge != "OK":
                raise IMAPError(f"EXPUNGE (after MOVE fallback) failed: {data_expunge}")

        self._run(_impl)

    def expunge(self) -> None:
        def _impl(conn: imaplib.IMAP4) -> None:
            typ, data = conn.expunge()
            if typ != "OK":
                raise IMAPError(f"EXPUNGE failed: {data}")

        self._run(_impl)

    def append(self, raw: bytes, folder: str, *, flags: Optional[Set[str]] = None) -> None:
        def _impl(conn: imaplib.IMAP4) -> None:
            flags_arg = "(" + " ".join(sorted(flags)) + ")" if flags else None
            date_time = imaplib.Time2Internaldate(time.time())
            typ, data = conn.append(self._format_mailbox_arg(folder), flags_arg, date_time, raw)
            if typ != "OK":
                raise IMAPError(f"APPEND to {folder!r} failed: {data}")

        self._run(_impl)
