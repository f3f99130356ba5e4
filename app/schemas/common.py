"""
Common Pydantic schemas
Shared response envelopes
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime
from enum import Enum


class ResponseStatus(str, Enum):
    """Response status enumeration"""
    SUCCESS = "success"
    ERROR = "error"


class BaseResponse(BaseModel):
    """Base response model"""
    status: ResponseStatus = ResponseStatus.SUCCESS
    message: str = ""
    data: Optional[Any] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class ErrorResponse(BaseResponse):
    """Error response model"""
    status: ResponseStatus = ResponseStatus.ERROR
    error_code: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None


class CountResponse(BaseModel):
    """A bare row count"""
    count: int = Field(..., ge=0)


class AdvanceResponse(BaseModel):
    """Whether a conditional phase advance was applied"""
    applied: bool


class KickResponse(BaseModel):
    """Humans left in the room after an inactivity kick"""
    remaining_count: int = Field(..., ge=0)
