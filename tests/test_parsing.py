from datetime import datetime, timezone

import pytest

from mailgate.errors import ParseError
from mailgate.parsing import html_to_text, parse_message, text_to_html

from fake_imap_client import make_raw


def test_text_to_html_paragraphs_and_breaks():
    assert text_to_html("a & b\nline two\n\nnext") == "<p>a &amp; b<br/>line two</p><p>next</p>"
    assert text_to_html("") == ""


def test_html_to_text_strips_markup():
    markup = "<style>p{color:red}</style><p>Hello&nbsp;<b>there</b></p><p>bye</p>"

    text = html_to_text(markup)

    assert "color" not in text
    assert text.split() == ["Hello", "there", "bye"]


def test_html_to_text_drops_comments_and_attributes():
    markup = '<p><a title="1 > 0" href="x">link</a> <!-- <b>secret</b> --> tail&nbsp;x</p>'

    text = html_to_text(markup)

    assert "link" in text
    assert "tail" in text
    assert "secret" not in text
    assert "-->" not in text
    assert "href" not in text


def test_plain_message():
    parsed = parse_message(make_raw(subject="Lunch", body="Noon?", message_id="<x@y>"))

    assert parsed.subject == "Lunch"
    assert parsed.from_text == "Alice <alice@example.com>"
    assert parsed.to_text == "bob@localhost"
    assert parsed.date == datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert parsed.text.strip() == "Noon?"
    assert parsed.html == "<p>Noon?</p>"
    assert parsed.message_id == "<x@y>"


def test_alternative_message_prefers_plain_text_rendition():
    parsed = parse_message(make_raw(body="plain body", html="<p>rich <i>body</i></p>"))

    assert parsed.text.strip() == "plain body"
    assert parsed.html == "<p>plain body</p>"


def test_html_only_message():
    parsed = parse_message(make_raw(body=None, html="<p>rich <i>body</i></p>"))

    assert parsed.html.strip() == "<p>rich <i>body</i></p>"
    assert parsed.text == "rich body"


def test_encoded_headers_are_decoded():
    raw = (
        b"From: =?utf-8?q?J=C3=BCrgen?= <j@example.com>\r\n"
        b"Subject: =?utf-8?b?R3LDvMOfZQ==?=\r\n"
        b"\r\n"
        b"hallo\r\n"
    )
    parsed = parse_message(raw)

    assert parsed.from_text == "Jürgen <j@example.com>"
    assert parsed.subject == "Grüße"
    assert parsed.date is None
    assert parsed.to_text is None


def test_unparsable_input_raises_parse_error():
    with pytest.raises(ParseError):
        parse_message(None)
