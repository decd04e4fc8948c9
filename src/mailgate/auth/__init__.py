from mailgate.auth.base import AuthContext, SMTPAuth, IMAPAuth
from mailgate.auth.password import PasswordAuth

__all__ = [
    "SMTPAuth",
    "IMAPAuth",
    "AuthContext",
    "PasswordAuth",
]
