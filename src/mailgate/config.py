# mailgate/config.py
from __future__ import annotations

import os
from dataclasses import dataclass

from mailgate.errors import ConfigError


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class IMAPConfig:
    host: str = "127.0.0.1"
    port: int = 143
    use_ssl: bool = False
    timeout: float = 30.0

    def validate(self) -> "IMAPConfig":
        if not self.host:
            raise ConfigError("IMAP host required")
        if not self.port or self.port < 1:
            raise ConfigError("IMAP port required")
        return self

    @classmethod
    def from_env(cls) -> "IMAPConfig":
        return cls(
            host=os.getenv("IMAP_HOST", "127.0.0.1"),
            port=_env_int("IMAP_PORT", 143),
            use_ssl=_env_bool("IMAP_SSL", False),
            timeout=float(_env_int("IMAP_TIMEOUT", 30)),
        ).validate()


@dataclass(frozen=True)
class SMTPConfig:
    host: str = "127.0.0.1"
    port: int = 25
    use_ssl: bool = False
    use_starttls: bool = False
    timeout: float = 30.0

    def validate(self) -> "SMTPConfig":
        if not self.host:
            raise ConfigError("SMTP host required")
        if not self.port or self.port < 1:
            raise ConfigError("SMTP port required")
        if self.use_ssl and self.use_starttls:
            raise ConfigError("SMTP_SSL and SMTP_STARTTLS are mutually exclusive")
        return self

    @classmethod
    def from_env(cls) -> "SMTPConfig":
        return cls(
            host=os.getenv("SMTP_HOST", "127.0.0.1"),
            port=_env_int("SMTP_PORT", 25),
            use_ssl=_env_bool("SMTP_SSL", False),
            use_starttls=_env_bool("SMTP_STARTTLS", False),
            timeout=float(_env_int("SMTP_TIMEOUT", 30)),
        ).validate()


@dataclass(frozen=True)
class MailboxConfig:
    """Everything the session and the engines need besides the two transports."""
    imap: IMAPConfig
    smtp: SMTPConfig
    mail_domain: str = "localhost"
    sent_folder: str = "Sent"
    trash_folder: str = "Trash"
    parse_workers: int = 8

    @classmethod
    def from_env(cls) -> "MailboxConfig":
        workers = _env_int("PARSE_WORKERS", 8)
        if workers < 1:
            raise ConfigError("PARSE_WORKERS must be >= 1")
        return cls(
            imap=IMAPConfig.from_env(),
            smtp=SMTPConfig.from_env(),
            mail_domain=os.getenv("MAIL_DOMAIN", "localhost"),
            sent_folder=os.getenv("SENT_FOLDER", "Sent"),
            trash_folder=os.getenv("TRASH_FOLDER", "Trash"),
            parse_workers=workers,
        )
