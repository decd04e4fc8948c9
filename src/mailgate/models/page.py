from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from mailgate.models.message import EmailRecord


@dataclass(frozen=True)
class PageResult:
    emails: List[EmailRecord] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_pages: int = 0
    total_messages: int = 0

    @staticmethod
    def count_pages(total_messages: int, page_size: int) -> int:
        return math.ceil(total_messages / page_size)

    def to_dict(self) -> dict:
        return {
            "emails": [e.to_dict() for e in self.emails],
            "page": self.page,
            "pageSize": self.page_size,
            "totalPages": self.total_pages,
            "totalMessages": self.total_messages,
        }
