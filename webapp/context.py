# webapp/context.py
import os
import sys

from dotenv import load_dotenv
from loguru import logger

from mailgate import MailboxConfig, MailSession

load_dotenv(override=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3000"))


def configure_logging(level: str = LOG_LEVEL) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level,
    )


def build_session() -> MailSession:
    """
    The single mailbox session of the process. Built once at startup and
    handed to every request through the app state.
    """
    return MailSession(MailboxConfig.from_env())
