from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional

PLACEHOLDER = "N/A"


@dataclass(frozen=True)
class FetchedMessage:
    """One FETCH response item: sequence number, its flags and the raw RFC822 bytes."""
    seq: int
    flags: FrozenSet[str] = field(default_factory=frozenset)
    raw: bytes = b""

    @property
    def seen(self) -> bool:
        return r"\Seen" in self.flags


@dataclass(frozen=True)
class ParsedMessage:
    from_text: Optional[str] = None
    to_text: Optional[str] = None
    subject: Optional[str] = None
    date: Optional[datetime] = None
    text: Optional[str] = None
    html: Optional[str] = None
    message_id: Optional[str] = None


@dataclass(frozen=True)
class EmailRecord:
    id: int
    from_email: str
    to: str
    subject: str
    date: datetime
    text: str
    html: str
    seen: bool

    @classmethod
    def from_parsed(cls, seq: int, parsed: ParsedMessage, *, seen: bool, now: datetime) -> "EmailRecord":
        return cls(
            id=seq,
            from_email=parsed.from_text or PLACEHOLDER,
            to=parsed.to_text or PLACEHOLDER,
            subject=parsed.subject or PLACEHOLDER,
            date=parsed.date or now,
            text=parsed.text or PLACEHOLDER,
            html=parsed.html or PLACEHOLDER,
            seen=seen,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "from": self.from_email,
            "to": self.to,
            "subject": self.subject,
            "date": self.date.isoformat(),
            "text": self.text,
            "html": self.html,
            "seen": self.seen,
        }
