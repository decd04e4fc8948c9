# mailgate/outbound.py
from __future__ import annotations

from loguru import logger

from mailgate.compose import build_message, build_reply, sender_address
from mailgate.errors import AuthError, IMAPError
from mailgate.imap import SEEN
from mailgate.parsing import parse_message
from mailgate.session import MailSession
from mailgate.types import SendResult


def _from_addr(session: MailSession) -> str:
    if not session.user:
        raise AuthError("No authenticated user")
    return sender_address(session.user, session.config.mail_domain)


async def send_email(session: MailSession, *, to: str, subject: str, html: str) -> SendResult:
    smtp = session.acquire_outbound()
    msg = build_message(from_addr=_from_addr(session), to=to, subject=subject, html=html)
    result = await session.run_blocking(smtp.send, msg)
    logger.info(f"Sent {result.message_id} to {to!r}")
    return result


async def send_reply(session: MailSession, seq: int, text: str) -> SendResult:
    """
    Reply to message `seq` of the selected folder. Once the send succeeds a
    copy is appended to the sent folder in the background; that append can
    fail without affecting the result.
    """
    imap = await session.acquire_connection()
    smtp = session.acquire_outbound()
    from_addr = _from_addr(session)

    await session.run_protocol(imap.select, session.selected_folder, readonly=False)
    fetched = await session.run_protocol(imap.fetch, [seq])
    if not fetched:
        raise IMAPError(f"Message {seq} not found in {session.selected_folder!r}")

    original = await session.run_blocking(parse_message, fetched[0].raw)
    reply = build_reply(original, text=text, from_addr=from_addr)

    result = await session.run_blocking(smtp.send, reply)
    logger.info(f"Reply {result.message_id} sent to {reply['To']!r}")

    sent_folder = session.config.sent_folder
    raw_copy = reply.as_bytes()

    async def _store_copy() -> None:
        await session.run_protocol(imap.append, raw_copy, sent_folder, flags={SEEN})

    session.spawn(_store_copy, what=f"append to {sent_folder!r}")
    return result
