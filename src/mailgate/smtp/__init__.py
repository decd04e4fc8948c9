from mailgate.smtp.client import SMTPClient

__all__ = [
    "SMTPClient",
]
