# Player-side game coordination
from .session import GameSession
from .lobby import Lobby
from .notifier import Notifier, Notice

__all__ = ["GameSession", "Lobby", "Notifier", "Notice"]
