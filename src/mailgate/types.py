from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class SendResult:
    ok: bool
    message_id: Optional[str] = None
    refused: Dict[str, Tuple[int, bytes]] = field(default_factory=dict)
