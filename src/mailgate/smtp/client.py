# mailgate/smtp/client.py
from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage as PyEmailMessage
from typing import Optional

from loguru import logger

from mailgate.auth import AuthContext, SMTPAuth
from mailgate.config import SMTPConfig
from mailgate.errors import AuthError, ConfigError, SMTPError
from mailgate.types import SendResult


@dataclass
class SMTPClient:
    """
    Outbound client bound to one set of credentials. A fresh SMTP session
    is opened per send; `close()` retires the client for good.
    """
    config: SMTPConfig
    auth: Optional[SMTPAuth] = None

    _closed: bool = field(default=False, init=False, repr=False)

    @classmethod
    def from_config(cls, config: SMTPConfig, auth: Optional[SMTPAuth] = None) -> "SMTPClient":
        if not config.host:
            raise ConfigError("SMTP host required")
        if not config.port:
            raise ConfigError("SMTP port required")
        return cls(config, auth=auth)

    @property
    def closed(self) -> bool:
        return self._closed

    def _open(self) -> smtplib.SMTP:
        cfg = self.config
        if cfg.use_ssl:
            server = smtplib.SMTP_SSL(cfg.host, cfg.port, timeout=cfg.timeout)
        else:
            server = smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout)
            if cfg.use_starttls:
                server.starttls(context=ssl.create_default_context())
        return server

    def send(self, msg: PyEmailMessage) -> SendResult:
        if self._closed:
            raise SMTPError("SMTP client is closed")

        server: Optional[smtplib.SMTP] = None
        try:
            server = self._open()
            if self.auth is not None:
                self.auth.apply_smtp(server, AuthContext(host=self.config.host, port=self.config.port))
            refused = server.send_message(msg)
        except AuthError:
            raise
        except (smtplib.SMTPException, OSError) as e:
            raise SMTPError(f"SMTP send failed: {e}") from e
        finally:
            if server is not None:
                try:
                    server.quit()
                except (smtplib.SMTPException, OSError):
                    pass

        logger.debug(f"SMTP accepted {msg.get('Message-ID')} for {msg.get('To')}")
        return SendResult(
            ok=len(refused) == 0,
            message_id=msg.get("Message-ID"),
            refused=dict(refused),
        )

    def close(self) -> None:
        self._closed = True
