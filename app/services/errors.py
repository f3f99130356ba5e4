"""
Store errors
Raised by every GameStore implementation
"""

from typing import Optional


class StoreError(Exception):
    """A storage or transport failure"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DuplicateRowError(StoreError):
    """An insert hit a uniqueness constraint"""

    def __init__(self, message: str = "Row already exists"):
        super().__init__(message, status_code=409)


class RowNotFoundError(StoreError):
    """The addressed row does not exist"""

    def __init__(self, message: str = "Row not found"):
        super().__init__(message, status_code=404)


class RoomFullError(StoreError):
    """A room already holds the maximum number of players"""

    def __init__(self, message: str = "Room is full"):
        super().__init__(message, status_code=400)
