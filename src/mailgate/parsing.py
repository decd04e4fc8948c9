# mailgate/parsing.py
from __future__ import annotations

import html as html_lib
import re
from email.message import EmailMessage as PyEmailMessage
from email.parser import BytesParser
from email.policy import default as default_policy
from email.utils import parsedate_to_datetime
from typing import Optional

import html2text

from mailgate.errors import ParseError
from mailgate.models import ParsedMessage

_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def text_to_html(text: str) -> str:
    """
    Render plain text as a small HTML fragment: escaped, one <p> per
    paragraph, single newlines as <br/>.
    """
    text = text.replace("\r\n", "\n").strip("\n")
    if not text:
        return ""
    paragraphs = _BLANK_LINES_RE.split(text)
    rendered = []
    for para in paragraphs:
        lines = [html_lib.escape(line) for line in para.split("\n")]
        rendered.append("<p>" + "<br/>".join(lines) + "</p>")
    return "".join(rendered)


def html_to_text(markup: str) -> str:
    h = html2text.HTML2Text()
    h.ignore_links = False
    h.ignore_images = True
    h.ignore_emphasis = True
    h.body_width = 0
    lines = [line.strip() for line in h.handle(markup).splitlines()]
    return "\n".join(line for line in lines if line)


def _part_content(part) -> str:
    try:
        content = part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    return content


def _header_text(msg: PyEmailMessage, name: str) -> Optional[str]:
    value = msg.get(name)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _header_date(msg: PyEmailMessage):
    header = msg.get("Date")
    if header is None:
        return None
    dt = getattr(header, "datetime", None)
    if dt is not None:
        return dt
    try:
        return parsedate_to_datetime(str(header))
    except (TypeError, ValueError):
        return None


def parse_message(raw: bytes) -> ParsedMessage:
    """Parse an RFC822 message into the fields the mailbox engines expose."""
    try:
        msg = BytesParser(policy=default_policy).parsebytes(raw)

        plain_part = msg.get_body(preferencelist=("plain",))
        html_part = msg.get_body(preferencelist=("html",))

        text = _part_content(plain_part) if plain_part is not None else None
        html = None
        if text:
            html = text_to_html(text)
        elif html_part is not None:
            html = _part_content(html_part)
            text = html_to_text(html)

        return ParsedMessage(
            from_text=_header_text(msg, "From"),
            to_text=_header_text(msg, "To"),
            subject=_header_text(msg, "Subject"),
            date=_header_date(msg),
            text=text or None,
            html=html or None,
            message_id=_header_text(msg, "Message-ID"),
        )
    except Exception as e:
        raise ParseError(f"Could not parse message: {e}") from e
