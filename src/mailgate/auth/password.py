from __future__ import annotations

import imaplib
import smtplib
from dataclasses import dataclass, field

from mailgate.auth.base import AuthContext
from mailgate.errors import AuthError


@dataclass(frozen=True)
class PasswordAuth:
    """
    Plain LOGIN / AUTH credentials, as taken from a Basic authorization header.
    The same pair authenticates both the IMAP connection and the SMTP client.
    """
    username: str
    password: str = field(repr=False)

    def apply_imap(self, conn, ctx: AuthContext) -> None:
        try:
            typ, _ = conn.login(self.username, self.password)
            if typ != "OK":
                raise AuthError("IMAP LOGIN failed (non-OK response)")
        except imaplib.IMAP4.error as e:
            raise AuthError(f"IMAP LOGIN failed for {self.username!r} at {ctx.host}:{ctx.port}: {e}") from e

    def apply_smtp(self, server, ctx: AuthContext) -> None:
        try:
            server.login(self.username, self.password)
        except smtplib.SMTPNotSupportedError:
            # Local relays often do not advertise AUTH; send unauthenticated.
            return
        except smtplib.SMTPException as e:
            raise AuthError(f"SMTP AUTH failed for {self.username!r} at {ctx.host}:{ctx.port}: {e}") from e
