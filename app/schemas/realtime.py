"""
Realtime Pydantic schemas
Row-change notifications and transient broadcast events
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime
from enum import Enum


class ChangeType(str, Enum):
    """Row change kind"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeEvent(BaseModel):
    """A row change on one of the watched tables"""
    table: str
    event: ChangeType
    new: Dict[str, Any] = Field(default_factory=dict)
    old: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def row(self) -> Dict[str, Any]:
        return self.new or self.old


class BroadcastEvent(BaseModel):
    """A transient message on a named channel, never persisted"""
    channel: str
    event: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    sender_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)
