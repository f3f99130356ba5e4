# Database models
from .room import GameRoom
from .player import Player
from .selection import PlayerSelection
from .guess import PlayerGuess
from .catalog import Organization, Topic, TopicItem, CustomTopic, CustomTopicItem
from .history import GameHistory

__all__ = [
    "GameRoom",
    "Player",
    "PlayerSelection",
    "PlayerGuess",
    "Organization", "Topic", "TopicItem", "CustomTopic", "CustomTopicItem",
    "GameHistory",
]
