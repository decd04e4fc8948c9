# mailgate/retrieval.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import List

from mailgate.models import EmailRecord, FetchedMessage, PageResult
from mailgate.parsing import parse_message
from mailgate.session import MailSession


def page_slice(seqs: List[int], page: int, page_size: int) -> List[int]:
    """Newest-first slice of `seqs` for a 1-based page; out of range gives []."""
    ordered = sorted(seqs, reverse=True)
    start = (page - 1) * page_size
    return ordered[start : start + page_size]


async def _parse_one(session: MailSession, fetched: FetchedMessage, now: datetime) -> EmailRecord:
    # seen comes from the FETCH flags, never from the parsed body
    seen = fetched.seen
    parsed = await session.run_blocking(parse_message, fetched.raw)
    return EmailRecord.from_parsed(fetched.seq, parsed, seen=seen, now=now)


async def list_page(session: MailSession, folder: str, page: int = 1, page_size: int = 10) -> PageResult:
    """
    Read one page of `folder` without touching any flags. Any failure
    discards the whole page.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    imap = await session.acquire_connection()
    await session.run_protocol(imap.select, folder, readonly=True)
    seqs = await session.run_protocol(imap.search, "ALL")

    total_messages = len(seqs)
    total_pages = PageResult.count_pages(total_messages, page_size)

    sliced = page_slice(seqs, page, page_size)
    fetched = await session.run_protocol(imap.fetch, sliced) if sliced else []

    now = datetime.now(timezone.utc)
    records = await asyncio.gather(*(_parse_one(session, m, now) for m in fetched))

    return PageResult(
        emails=sorted(records, key=lambda r: r.id, reverse=True),
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        total_messages=total_messages,
    )
