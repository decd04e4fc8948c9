# mailgate/compose.py
from __future__ import annotations

from datetime import datetime, timezone
from email.message import EmailMessage as PyEmailMessage
from email.utils import format_datetime, make_msgid
from typing import Optional

from mailgate.models import PLACEHOLDER, ParsedMessage

REPLY_PREFIX = "Re: "


def sender_address(user: str, domain: str) -> str:
    if "@" in user:
        return user
    return f"{user}@{domain}"


def reply_subject(subject: Optional[str]) -> str:
    subject = subject or ""
    if subject.startswith(REPLY_PREFIX):
        return subject
    return f"{REPLY_PREFIX}{subject}"


def reply_body(text: str, original: ParsedMessage) -> str:
    when = original.date.isoformat() if original.date else PLACEHOLDER
    who = original.from_text or PLACEHOLDER
    quoted = original.html or ""
    return f"{text}<br/><br/>On {when}, {who} wrote:<br/><br/>{quoted}"


def build_message(
    *,
    from_addr: str,
    to: str,
    subject: str,
    html: str,
    in_reply_to: Optional[str] = None,
) -> PyEmailMessage:
    domain = from_addr.rsplit("@", 1)[-1] if "@" in from_addr else None
    msg = PyEmailMessage()
    msg["From"] = from_addr
    msg["To"] = to
    msg["Subject"] = subject
    msg["Date"] = format_datetime(datetime.now(timezone.utc))
    msg["Message-ID"] = make_msgid(domain=domain)
    if in_reply_to:
        msg["In-Reply-To"] = in_reply_to
        msg["References"] = in_reply_to
    msg.set_content(html, subtype="html", charset="utf-8")
    return msg


def build_reply(original: ParsedMessage, *, text: str, from_addr: str) -> PyEmailMessage:
    if not original.from_text:
        raise ValueError("Original message has no sender to reply to")
    return build_message(
        from_addr=from_addr,
        to=original.from_text,
        subject=reply_subject(original.subject),
        html=reply_body(text, original),
        in_reply_to=original.message_id,
    )
