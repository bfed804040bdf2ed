"""Runtime story player: node lookup, navigation and play state."""

from talegraph.player.loader import StoryLoader
from talegraph.player.session import GameState, PlaySession

__all__ = [
    "GameState",
    "PlaySession",
    "StoryLoader",
]
