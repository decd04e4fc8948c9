from mailgate.imap.client import DELETED, SEEN, IMAPClient
from mailgate.imap.mailbox_list import FolderInfo

__all__ = ["IMAPClient", "FolderInfo", "SEEN", "DELETED"]
