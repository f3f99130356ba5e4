"""
Room Pydantic schemas
Lobby request payloads
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RoomCreate(BaseModel):
    """Room insert payload"""
    join_code: str = Field(..., min_length=4, max_length=12)
    host_name: str = Field(..., min_length=1, max_length=50)
    total_rounds: int = Field(default=3, ge=1, le=20)
    organization_id: Optional[str] = None

    @field_validator("join_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class RoomLookup(BaseModel):
    """Join-code lookup payload"""
    join_code: str
    user_id: Optional[str] = None

    @field_validator("join_code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class ReassignHostRequest(BaseModel):
    """Host election request"""
    leaving_player_id: Optional[str] = None
