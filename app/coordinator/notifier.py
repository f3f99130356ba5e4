"""
User-visible notices
"""

import logging
from typing import List, Optional
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Notice(BaseModel):
    """A short message shown to the player"""
    title: str
    description: str = ""
    variant: NoticeVariant = NoticeVariant.DEFAULT
    created_at: datetime = Field(default_factory=datetime.now)


class Notifier:
    """Collects notices for the presentation layer and logs them"""

    def __init__(self, limit: int = 100):
        self.notices: List[Notice] = []
        self.limit = limit

    def info(self, title: str, description: str = "") -> Notice:
        return self._push(Notice(title=title, description=description))

    def error(self, title: str, description: str = "") -> Notice:
        return self._push(Notice(title=title, description=description, variant=NoticeVariant.DESTRUCTIVE))

    def latest(self) -> Optional[Notice]:
        return self.notices[-1] if self.notices else None

    def titles(self) -> List[str]:
        return [n.title for n in self.notices]

    def _push(self, notice: Notice) -> Notice:
        self.notices.append(notice)
        if len(self.notices) > self.limit:
            del self.notices[0]
        log = logger.warning if notice.variant == NoticeVariant.DESTRUCTIVE else logger.info
        log(f"[NOTICE] {notice.title}" + (f": {notice.description}" if notice.description else ""))
        return notice
