import pytest
import pytest_asyncio

from mailgate import IMAPConfig, MailboxConfig, MailSession, SMTPConfig
from mailgate.auth import PasswordAuth

from fake_imap_client import FakeIMAPClient, FakeSMTPClient

CREDS = PasswordAuth(username="bob", password="secret")


@pytest.fixture
def config():
    return MailboxConfig(imap=IMAPConfig(), smtp=SMTPConfig(), parse_workers=4)


@pytest.fixture
def fake_imap():
    imap = FakeIMAPClient(username=CREDS.username, password=CREDS.password)
    for name in ("INBOX", "Drafts", "Sent", "Trash"):
        imap.add_folder(name)
    return imap


@pytest.fixture
def fake_smtp():
    return FakeSMTPClient()


@pytest.fixture
def session(config, fake_imap, fake_smtp):
    return MailSession(
        config,
        imap_factory=lambda cfg, auth: fake_imap.connect(auth),
        smtp_factory=lambda cfg, auth: fake_smtp.bind(auth),
    )


@pytest_asyncio.fixture
async def authed_session(session):
    result = await session.ensure(CREDS)
    assert result.ok
    yield session
    await session.close()
