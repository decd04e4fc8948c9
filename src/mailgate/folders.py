# mailgate/folders.py
from __future__ import annotations

from typing import Optional, Sequence

from loguru import logger

from mailgate.errors import FolderNotFound
from mailgate.session import MailSession


def match_folder(requested: str, names: Sequence[str]) -> Optional[str]:
    """
    Case-insensitive lookup of `requested` among `names`.
    An exact match wins; otherwise the first name containing it, in server order.
    """
    needle = requested.lower()
    for name in names:
        if name.lower() == needle:
            return name
    for name in names:
        if needle in name.lower():
            return name
    return None


async def resolve_folder(session: MailSession, requested: str) -> str:
    """
    Map a user-supplied folder name onto the live folder list. The result
    becomes the session's selected folder for later flag/reply calls.
    """
    imap = await session.acquire_connection()
    folders = await session.run_protocol(imap.list_folders)
    names = [f.name for f in folders if f.selectable]
    logger.debug(f"Live folders: {names}")

    match = match_folder(requested, names)
    if match is None:
        raise FolderNotFound(requested)

    session.selected_folder = match
    logger.info(f"Resolved folder {requested!r} -> {match!r}")
    return match
