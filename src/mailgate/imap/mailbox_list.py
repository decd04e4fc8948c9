# mailgate/imap/mailbox_list.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Union

_LIST_RE = re.compile(
    r'^\((?P<flags>[^)]*)\)\s+(?P<delim>"(?:[^"\\]|\\.)*"|NIL)\s+(?P<name>.*)$',
    re.IGNORECASE,
)


@dataclass(frozen=True)
class FolderInfo:
    name: str
    flags: FrozenSet[str]
    delimiter: Optional[str]

    @property
    def selectable(self) -> bool:
        return r"\NOSELECT" not in self.flags and r"\NONEXISTENT" not in self.flags


def _unquote(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and s.startswith('"') and s.endswith('"'):
        return s[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return s


def parse_list_line(raw: Union[bytes, tuple]) -> Optional[FolderInfo]:
    """
    Parse one LIST response line. Names sent as literals arrive from imaplib
    as a (b'(...) "/" {9}', b'Sent Mail') tuple.
    """
    literal_name: Optional[str] = None
    if isinstance(raw, tuple):
        head, literal = raw[0], raw[1]
        line = head.decode(errors="ignore")
        literal_name = literal.decode(errors="ignore")
    else:
        line = raw.decode(errors="ignore")

    m = _LIST_RE.match(line.strip())
    if not m:
        return None

    flags = frozenset(f.upper() for f in m.group("flags").split() if f)
    delim_raw = m.group("delim")
    delimiter = None if delim_raw.upper() == "NIL" else _unquote(delim_raw)

    if literal_name is not None:
        name = literal_name
    else:
        name = _unquote(m.group("name"))
    if not name:
        return None
    return FolderInfo(name=name, flags=flags, delimiter=delimiter)


def parse_list_response(data: Iterable[Union[bytes, tuple, None]]) -> List[FolderInfo]:
    out: List[FolderInfo] = []
    for raw in data or []:
        if not raw:
            continue
        info = parse_list_line(raw)
        if info is not None:
            out.append(info)
    return out
