# mailgate/__init__.py
from mailgate.config import IMAPConfig, MailboxConfig, SMTPConfig
from mailgate.email_manager import MailboxManager
from mailgate.session import MailSession, SessionResult

__all__ = [
    "MailboxManager",
    "MailSession",
    "SessionResult",
    "MailboxConfig",
    "SMTPConfig",
    "IMAPConfig",
]
