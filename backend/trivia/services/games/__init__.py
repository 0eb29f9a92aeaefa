"""Game domain services: room registry, question bank and round engine.

Transport concerns stay in ``trivia.socketio_events``; everything here talks
to clients only through an injected broadcaster.
"""

from .engine import GameEngine
from .registry import Player, Room, RoomRegistry

__all__ = ['GameEngine', 'Player', 'Room', 'RoomRegistry']
