import re
import threading
from typing import Dict, List, Optional

from trivia.errors import DuplicateCode, InvalidCode


CODE_PATTERN = re.compile(r'[A-Za-z0-9]{8}')


def normalize_code(code) -> Optional[str]:
    """Upper-case a room code, or return None when it is not 8 alphanumerics."""
    if not isinstance(code, str) or not CODE_PATTERN.fullmatch(code):
        return None
    return code.upper()


class Player:
    def __init__(self, id: str, name: str, is_host: bool = False):
        self.id = id
        self.name = name
        self.score = 0
        self.is_host = is_host

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'isHost': self.is_host,
        }


class Room:
    """Authoritative state of one game.

    All reads and writes go through ``lock``; handlers and timer callbacks
    take it for the whole state transition.
    """

    def __init__(self, code: str, host_id: str, question_duration: int = 15):
        self.code = code
        self.host_id = host_id
        self.players: Dict[str, Player] = {}
        self.started = False
        self.grade_level: Optional[str] = None
        self.current_question = None
        self.question_index = 0
        self.used_question_ids = set()
        self.question_answered = False
        self.question_duration = question_duration
        self.time_remaining = question_duration
        # Single slot for the countdown or the pending deferred advance
        self.timer = None
        self.winner: Optional[Player] = None
        self.lock = threading.RLock()

    def add_player(self, connection_id: str, name: str) -> Player:
        player = self.players.get(connection_id)
        if player:
            player.name = name
            return player
        player = Player(connection_id, name, is_host=(connection_id == self.host_id))
        self.players[connection_id] = player
        return player

    def remove_player(self, connection_id: str) -> Optional[Player]:
        return self.players.pop(connection_id, None)

    def player_list(self) -> List[dict]:
        return [p.to_dict() for p in self.players.values()]

    def find_winner(self, threshold: int) -> Optional[Player]:
        for player in self.players.values():
            if player.score >= threshold:
                return player
        return None

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def reset(self) -> None:
        """Return to the lobby, keeping the roster with zeroed scores."""
        self.cancel_timer()
        self.started = False
        self.grade_level = None
        self.current_question = None
        self.question_index = 0
        self.used_question_ids.clear()
        self.question_answered = False
        self.time_remaining = self.question_duration
        self.winner = None
        for player in self.players.values():
            player.score = 0


class RoomRegistry:
    """Process-wide map of room code to Room, plus connection bindings.

    A connection is bound to at most one room at a time.
    """

    def __init__(self, question_duration: int = 15):
        self.question_duration = question_duration
        self._rooms: Dict[str, Room] = {}
        self._bindings: Dict[str, str] = {}
        self._lock = threading.RLock()

    def __len__(self):
        return len(self._rooms)

    def create_room(self, code, host_id: str) -> Room:
        normalized = normalize_code(code)
        if normalized is None:
            raise InvalidCode()
        with self._lock:
            if normalized in self._rooms:
                raise DuplicateCode()
            room = Room(normalized, host_id, question_duration=self.question_duration)
            self._rooms[normalized] = room
            return room

    def lookup(self, code) -> Optional[Room]:
        if not isinstance(code, str):
            return None
        return self._rooms.get(code.upper())

    def destroy(self, code) -> Optional[Room]:
        if not isinstance(code, str):
            return None
        with self._lock:
            room = self._rooms.pop(code.upper(), None)
            if room is not None:
                for sid in [s for s, c in self._bindings.items() if c == room.code]:
                    self._bindings.pop(sid, None)
            return room

    def bind(self, connection_id: str, code: str) -> None:
        with self._lock:
            self._bindings[connection_id] = code

    def unbind(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._bindings.pop(connection_id, None)

    def code_for(self, connection_id: str) -> Optional[str]:
        return self._bindings.get(connection_id)

    def room_for(self, connection_id: str) -> Optional[Room]:
        code = self._bindings.get(connection_id)
        return self._rooms.get(code) if code else None

    def connections_in(self, code: str) -> List[str]:
        return [sid for sid, c in self._bindings.items() if c == code]
