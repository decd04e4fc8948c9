# mailgate/mutations.py
from __future__ import annotations

from loguru import logger

from mailgate.imap import DELETED, SEEN, IMAPClient
from mailgate.session import MailSession


async def mark_read(session: MailSession, seq: int) -> None:
    imap = await session.acquire_connection()
    await session.run_protocol(imap.select, session.selected_folder, readonly=False)
    await session.run_protocol(imap.add_flags, seq, {SEEN})


async def mark_unread(session: MailSession, seq: int) -> None:
    imap = await session.acquire_connection()
    await session.run_protocol(imap.select, session.selected_folder, readonly=False)
    await session.run_protocol(imap.remove_flags, seq, {SEEN})


async def move_to_folder(session: MailSession, seq: int, source_folder: str, dest_folder: str) -> None:
    imap = await session.acquire_connection()
    await session.run_protocol(imap.select, source_folder, readonly=False)
    await session.run_protocol(imap.move, seq, dest_folder)
    logger.info(f"Moved message {seq} from {source_folder!r} to {dest_folder!r}")


def _expunge_folder(imap: IMAPClient, folder: str) -> None:
    """
    Expunge `folder` and leave the connection selected as it was found, so a
    request that already opened another folder keeps its selection.
    Runs as one protocol job.
    """
    previous = (imap.selected_folder, imap.selected_readonly) if imap.state == "selected" else None
    if previous == (folder, False):
        imap.expunge()
        return

    imap.select(folder, readonly=False)
    try:
        imap.expunge()
    finally:
        if previous is None:
            imap.close_folder()
        else:
            imap.select(previous[0], readonly=previous[1])


async def delete_message(session: MailSession, seq: int) -> None:
    """
    Flag `seq` in the trash folder as deleted and return. The expunge runs
    in the background; until it does, the message stays flagged and a later
    expunge removes it.
    """
    trash = session.config.trash_folder
    imap = await session.acquire_connection()
    await session.run_protocol(imap.select, trash, readonly=False)
    await session.run_protocol(imap.add_flags, seq, {DELETED})

    async def _cleanup() -> None:
        await session.run_protocol(_expunge_folder, imap, trash)
        logger.info(f"Expunged {trash!r} after deleting message {seq}")

    session.spawn(_cleanup, what=f"expunge of {trash!r}")
