from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class AuthContext:
    host: str
    port: int


class IMAPAuth(Protocol):
    username: str

    def apply_imap(self, conn, ctx: AuthContext) -> None: ...


class SMTPAuth(Protocol):
    username: str

    def apply_smtp(self, server, ctx: AuthContext) -> None: ...
