import imaplib
from unittest.mock import MagicMock

import pytest

from mailgate import IMAPConfig
from mailgate.auth import PasswordAuth
from mailgate.errors import AuthError, ConfigError, IMAPError
from mailgate.imap import IMAPClient


def _imap4_factory(conn):
    factory = MagicMock(return_value=conn)
    factory.error = imaplib.IMAP4.error
    factory.abort = imaplib.IMAP4.abort
    return factory


@pytest.fixture
def conn():
    conn = MagicMock()
    conn.state = "AUTH"
    return conn


@pytest.fixture
def client(conn):
    client = IMAPClient.from_config(IMAPConfig())
    client._conn = conn
    return client


def test_from_config_requires_host():
    with pytest.raises(ConfigError):
        IMAPClient.from_config(IMAPConfig(host=""))


def test_connect_without_credentials():
    with pytest.raises(ConfigError):
        IMAPClient.from_config(IMAPConfig()).connect()


def test_connect_logs_in(monkeypatch):
    conn = MagicMock()
    conn.login.return_value = ("OK", [b"LOGIN completed"])
    conn.state = "AUTH"
    monkeypatch.setattr(imaplib, "IMAP4", _imap4_factory(conn))

    client = IMAPClient.from_config(IMAPConfig()).connect(PasswordAuth("bob", "secret"))

    conn.login.assert_called_once_with("bob", "secret")
    assert client.state == "authenticated"


def test_connect_rejected_login(monkeypatch):
    conn = MagicMock()
    conn.login.side_effect = imaplib.IMAP4.error("LOGIN failed")
    monkeypatch.setattr(imaplib, "IMAP4", _imap4_factory(conn))

    client = IMAPClient.from_config(IMAPConfig())
    with pytest.raises(AuthError):
        client.connect(PasswordAuth("bob", "wrong"))

    conn.logout.assert_called_once()
    assert client.state == "logout"


def test_select_quotes_folder_names(client, conn):
    conn.select.return_value = ("OK", [b"3"])

    assert client.select("Sent Items", readonly=True) == 3
    conn.select.assert_called_with('"Sent Items"', readonly=True)

    client.select("inbox", readonly=False)
    conn.select.assert_called_with("INBOX", readonly=False)
    assert client.selected_folder == "inbox"
    assert client.selected_readonly is False


def test_select_failure(client, conn):
    conn.select.return_value = ("NO", [b"no such mailbox"])

    with pytest.raises(IMAPError):
        client.select("Nope", readonly=True)


def test_fetch_peeks_bodies(client, conn):
    conn.fetch.return_value = (
        "OK",
        [(rb"2 (FLAGS (\Seen) BODY[] {3}", b"a\r\n"), b")"],
    )

    (msg,) = client.fetch([2, 1])

    conn.fetch.assert_called_once_with("2,1", "(FLAGS BODY.PEEK[])")
    assert msg.seq == 2
    assert msg.seen


def test_store_flags(client, conn):
    conn.store.return_value = ("OK", [])

    client.add_flags(4, {r"\Seen"})
    conn.store.assert_called_with("4", "+FLAGS", r"(\Seen)")

    client.remove_flags(4, {r"\Seen"})
    conn.store.assert_called_with("4", "-FLAGS", r"(\Seen)")


def test_move_uses_move_command(client, conn):
    conn.xatom.return_value = ("OK", [])

    client.move(3, "Trash")

    conn.xatom.assert_called_once_with("MOVE", "3", '"Trash"')
    conn.copy.assert_not_called()


def test_move_falls_back_to_copy_and_expunge(client, conn):
    conn.xatom.side_effect = imaplib.IMAP4.error("BAD unknown command")
    conn.copy.return_value = ("OK", [])
    conn.store.return_value = ("OK", [])
    conn.expunge.return_value = ("OK", [])

    client.move(3, "Trash")

    conn.copy.assert_called_once_with("3", '"Trash"')
    conn.store.assert_called_once_with("3", "+FLAGS.SILENT", r"(\Deleted)")
    conn.expunge.assert_called_once()


def test_protocol_errors_are_wrapped(client, conn):
    conn.search.side_effect = OSError("connection reset")

    with pytest.raises(IMAPError):
        client.search()


def test_search_returns_sequence_numbers(client, conn):
    conn.search.return_value = ("OK", [b"1 2 3"])

    assert client.search() == [1, 2, 3]
    conn.search.assert_called_once_with(None, "ALL")


def test_close_folder_only_when_selected(client, conn):
    client.close_folder()
    conn.close.assert_not_called()

    conn.state = "SELECTED"
    conn.close.return_value = ("OK", [])
    client.close_folder()
    conn.close.assert_called_once()


def test_logout_forgets_connection(client, conn):
    client.logout()

    conn.logout.assert_called_once()
    assert client.state == "logout"
    with pytest.raises(IMAPError):
        client.list_folders()
