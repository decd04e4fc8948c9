# mailgate/email_manager.py
from __future__ import annotations

from dataclasses import dataclass

from mailgate import folders, mutations, outbound, retrieval
from mailgate.models import PageResult
from mailgate.session import MailSession
from mailgate.types import SendResult


@dataclass(frozen=True)
class MailboxManager:
    """Mailbox operations bound to one injected session."""
    session: MailSession

    # -----------------
    # Retrieval
    # -----------------
    async def resolve_folder(self, requested: str) -> str:
        return await folders.resolve_folder(self.session, requested)

    async def list_page(self, folder: str, *, page: int = 1, page_size: int = 10) -> PageResult:
        return await retrieval.list_page(self.session, folder, page, page_size)

    async def fetch_page(self, requested_folder: str = "INBOX", *, page: int = 1, page_size: int = 10) -> PageResult:
        folder = await self.resolve_folder(requested_folder)
        return await self.list_page(folder, page=page, page_size=page_size)

    # -----------------
    # Flags / location
    # -----------------
    async def mark_read(self, seq: int) -> None:
        await mutations.mark_read(self.session, seq)

    async def mark_unread(self, seq: int) -> None:
        await mutations.mark_unread(self.session, seq)

    async def move(self, seq: int, *, src_folder: str, dst_folder: str) -> None:
        await mutations.move_to_folder(self.session, seq, src_folder, dst_folder)

    async def delete(self, seq: int) -> None:
        await mutations.delete_message(self.session, seq)

    # -----------------
    # Outbound
    # -----------------
    async def send(self, *, to: str, subject: str, html: str) -> SendResult:
        return await outbound.send_email(self.session, to=to, subject=subject, html=html)

    async def reply(self, seq: int, text: str) -> SendResult:
        return await outbound.send_reply(self.session, seq, text)
