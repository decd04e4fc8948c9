# mailgate/errors.py
from __future__ import annotations


class MailgateError(Exception):
    """Base class for every error raised by mailgate."""


class ConfigError(MailgateError):
    pass


class AuthError(MailgateError):
    """Missing/bad credentials or a failed connect+login."""


class FolderNotFound(MailgateError):
    def __init__(self, requested: str):
        super().__init__(f"No folder matches {requested!r}")
        self.requested = requested


class IMAPError(MailgateError):
    pass


class SMTPError(MailgateError):
    pass


class ParseError(MailgateError):
    pass
