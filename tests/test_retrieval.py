import math
from datetime import datetime, timezone

import pytest

from mailgate.errors import IMAPError, ParseError
from mailgate.models import PLACEHOLDER
from mailgate.retrieval import list_page, page_slice


def _seed(fake_imap, folder, n):
    for i in range(1, n + 1):
        fake_imap.add_message(folder, subject=f"Message {i}", message_id=f"<m{i}@example.com>")


def test_page_slice_is_newest_first():
    seqs = list(range(1, 26))
    assert page_slice(seqs, 1, 10) == list(range(25, 15, -1))
    assert page_slice(seqs, 2, 10) == list(range(15, 5, -1))
    assert page_slice(seqs, 3, 10) == [5, 4, 3, 2, 1]
    assert page_slice(seqs, 4, 10) == []


@pytest.mark.asyncio
async def test_empty_mailbox(authed_session):
    result = await list_page(authed_session, "INBOX", 1, 10)

    assert result.to_dict() == {
        "emails": [],
        "page": 1,
        "pageSize": 10,
        "totalPages": 0,
        "totalMessages": 0,
    }


@pytest.mark.asyncio
async def test_second_page_of_twenty_five(authed_session, fake_imap):
    _seed(fake_imap, "INBOX", 25)

    result = await list_page(authed_session, "INBOX", 2, 10)

    assert [e.id for e in result.emails] == list(range(15, 5, -1))
    assert [e.subject for e in result.emails][0] == "Message 15"
    assert result.total_messages == 25
    assert result.total_pages == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("total,page_size", [(0, 5), (1, 1), (7, 3), (9, 3), (10, 4)])
async def test_page_counts(authed_session, fake_imap, total, page_size):
    _seed(fake_imap, "INBOX", total)

    for page in range(1, math.ceil(total / page_size) + 2):
        result = await list_page(authed_session, "INBOX", page, page_size)
        assert result.total_pages == math.ceil(total / page_size)
        assert result.total_messages == total
        assert len(result.emails) <= page_size


@pytest.mark.asyncio
async def test_out_of_range_page_is_empty(authed_session, fake_imap):
    _seed(fake_imap, "INBOX", 3)

    result = await list_page(authed_session, "INBOX", 5, 10)

    assert result.emails == []
    assert result.total_messages == 3
    assert result.total_pages == 1


@pytest.mark.asyncio
async def test_listing_does_not_change_seen_flags(authed_session, fake_imap):
    fake_imap.add_message("INBOX", subject="read", flags={r"\Seen"})
    fake_imap.add_message("INBOX", subject="unread")

    first = await list_page(authed_session, "INBOX", 1, 10)
    second = await list_page(authed_session, "INBOX", 1, 10)

    seen = {e.subject: e.seen for e in first.emails}
    assert seen == {"read": True, "unread": False}
    assert [e.to_dict()["seen"] for e in second.emails] == [e.to_dict()["seen"] for e in first.emails]
    assert fake_imap.flags_of("INBOX", 1) == {r"\Seen"}
    assert fake_imap.flags_of("INBOX", 2) == frozenset()
    assert fake_imap.selected_readonly is True


@pytest.mark.asyncio
async def test_record_fields(authed_session, fake_imap):
    fake_imap.add_message(
        "INBOX",
        subject="Lunch",
        from_addr="Alice <alice@example.com>",
        to="bob@localhost",
        body="Noon <sharp>?",
    )

    (record,) = (await list_page(authed_session, "INBOX", 1, 10)).emails
    d = record.to_dict()

    assert d["id"] == 1
    assert d["from"] == "Alice <alice@example.com>"
    assert d["to"] == "bob@localhost"
    assert d["subject"] == "Lunch"
    assert d["date"] == "2024-03-01T09:30:00+00:00"
    assert d["text"].strip() == "Noon <sharp>?"
    assert d["html"] == "<p>Noon &lt;sharp&gt;?</p>"
    assert d["seen"] is False


@pytest.mark.asyncio
async def test_missing_fields_get_placeholders(authed_session, fake_imap):
    fake_imap.add_message(
        "INBOX", subject=None, from_addr=None, to=None, date=None, body=None, message_id=None
    )
    before = datetime.now(timezone.utc)

    (record,) = (await list_page(authed_session, "INBOX", 1, 10)).emails

    assert record.from_email == PLACEHOLDER
    assert record.to == PLACEHOLDER
    assert record.subject == PLACEHOLDER
    assert record.text == PLACEHOLDER
    assert record.html == PLACEHOLDER
    assert record.date >= before


@pytest.mark.asyncio
async def test_protocol_failure_fails_whole_page(authed_session, fake_imap):
    _seed(fake_imap, "INBOX", 3)
    fake_imap.fail_ops.add("fetch")

    with pytest.raises(IMAPError):
        await list_page(authed_session, "INBOX", 1, 10)


@pytest.mark.asyncio
async def test_parse_failure_fails_whole_page(authed_session, fake_imap, monkeypatch):
    _seed(fake_imap, "INBOX", 3)

    def _broken(raw):
        raise ParseError("bad body")

    monkeypatch.setattr("mailgate.retrieval.parse_message", _broken)

    with pytest.raises(ParseError):
        await list_page(authed_session, "INBOX", 1, 10)


@pytest.mark.asyncio
async def test_invalid_page_arguments(authed_session):
    with pytest.raises(ValueError):
        await list_page(authed_session, "INBOX", 0, 10)
    with pytest.raises(ValueError):
        await list_page(authed_session, "INBOX", 1, 0)
