from mailgate.models.message import PLACEHOLDER, EmailRecord, FetchedMessage, ParsedMessage
from mailgate.models.page import PageResult

__all__ = [
    "PLACEHOLDER",
    "EmailRecord",
    "FetchedMessage",
    "ParsedMessage",
    "PageResult",
]
