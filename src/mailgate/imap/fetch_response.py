# mailgate/imap/fetch_response.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterator, List, Optional, Sequence, Union

from mailgate.models import FetchedMessage

_SEQ_RE = re.compile(r"^\s*(\d+)\s+\(")
_FLAGS_RE = re.compile(r"FLAGS\s*\(([^)]*)\)", re.IGNORECASE)
_BODY_RE = re.compile(r"BODY\[\]", re.IGNORECASE)

FetchData = Sequence[Union[bytes, tuple, None]]


@dataclass(frozen=True)
class FetchPiece:
    meta: str
    payload: Optional[bytes]


def _decode_meta(raw: object) -> str:
    if isinstance(raw, bytes):
        return raw.decode("ascii", errors="replace")
    return str(raw)


def iter_fetch_pieces(data: FetchData) -> Iterator[FetchPiece]:
    """
    imaplib hands FETCH results back as a flat list mixing
    (meta, literal) tuples and bare bytes (closing parens or trailing items).
    """
    for item in data:
        if item is None:
            continue
        if isinstance(item, tuple):
            meta = _decode_meta(item[0]) if item else ""
            payload = item[1] if len(item) > 1 and isinstance(item[1], bytes) else None
            yield FetchPiece(meta=meta, payload=payload)
        else:
            yield FetchPiece(meta=_decode_meta(item), payload=None)


def parse_seq(meta: str) -> Optional[int]:
    m = _SEQ_RE.match(meta)
    return int(m.group(1)) if m else None


def parse_flags(meta: str) -> Optional[FrozenSet[str]]:
    m = _FLAGS_RE.search(meta)
    if not m:
        return None
    return frozenset(tok for tok in m.group(1).split() if tok)


def has_full_body(meta: str) -> bool:
    return bool(_BODY_RE.search(meta))


def collect_messages(data: FetchData) -> List[FetchedMessage]:
    """
    Fold a `FETCH n (FLAGS BODY.PEEK[])` response into one FetchedMessage per
    sequence number, in arrival order. FLAGS may come before or after the
    body literal, so trailing bare items are attributed to the current message.
    """
    order: List[int] = []
    flags: dict = {}
    bodies: dict = {}
    current: Optional[int] = None

    for piece in iter_fetch_pieces(data):
        seq = parse_seq(piece.meta)
        if seq is not None:
            current = seq
            if seq not in flags:
                order.append(seq)
                flags[seq] = frozenset()
        if current is None:
            continue

        parsed = parse_flags(piece.meta)
        if parsed is not None:
            flags[current] = parsed

        if piece.payload is not None and has_full_body(piece.meta):
            bodies[current] = piece.payload

    return [
        FetchedMessage(seq=seq, flags=flags[seq], raw=bodies[seq])
        for seq in order
        if seq in bodies
    ]
