"""Room lifecycle and round engine.

Lobby -> awaiting question -> question active -> resolved -> next round or
game over. Every transition runs under the room's lock, whether it comes from
a client event or from a scheduled callback. ``Room.question_answered`` is the
latch that lets exactly one of "first correct answer" and "timer expired"
resolve a question.
"""

import logging
import random
import time
from functools import partial
from typing import Optional, Sequence

from trivia.errors import (
    GameAlreadyStarted,
    InvalidGrade,
    InvalidName,
    NoQuestionsAvailable,
    NotHost,
    RoomNotFound,
)
from .questions import candidate_pool, draw_question, shuffle_answers
from .registry import Room, RoomRegistry


TICK_INTERVAL_SEC = 1


class GameEngine:
    def __init__(
        self,
        registry: RoomRegistry,
        provider,
        scheduler,
        broadcaster,
        logger: Optional[logging.Logger] = None,
        grade_levels: Sequence[str] = ('6th', '7th', '8th'),
        question_duration: int = 15,
        first_question_delay: float = 1,
        next_question_delay: float = 3,
        winning_score: int = 10,
        max_name_length: int = 20,
        max_chat_length: int = 200,
        rng=random,
    ):
        self.registry = registry
        self.provider = provider
        self.scheduler = scheduler
        self.broadcaster = broadcaster
        self.logger = logger or logging.getLogger(__name__)
        self.grade_levels = tuple(grade_levels)
        self.question_duration = question_duration
        self.first_question_delay = first_question_delay
        self.next_question_delay = next_question_delay
        self.winning_score = winning_score
        self.max_name_length = max_name_length
        self.max_chat_length = max_chat_length
        self.rng = rng

    @classmethod
    def from_config(cls, config, registry, provider, scheduler, broadcaster, logger=None):
        return cls(
            registry,
            provider,
            scheduler,
            broadcaster,
            logger=logger,
            grade_levels=config.get('GRADE_LEVELS', ('6th', '7th', '8th')),
            question_duration=int(config.get('QUESTION_DURATION_SEC', 15)),
            first_question_delay=float(config.get('FIRST_QUESTION_DELAY_SEC', 1)),
            next_question_delay=float(config.get('NEXT_QUESTION_DELAY_SEC', 3)),
            winning_score=int(config.get('WINNING_SCORE', 10)),
            max_name_length=int(config.get('MAX_NAME_LENGTH', 20)),
            max_chat_length=int(config.get('MAX_CHAT_LENGTH', 200)),
        )

    # ---- Room membership ----

    def create_room(self, code, connection_id: str) -> Room:
        room = self.registry.create_room(code, connection_id)
        previous = self.registry.code_for(connection_id)
        if previous and previous != room.code:
            self.leave(connection_id)
        self.registry.bind(connection_id, room.code)
        self.broadcaster.subscribe(connection_id, room.code)
        self.logger.info(f"[room-created] room={room.code} host={connection_id}")
        return room

    def join_room(self, code, connection_id: str) -> Room:
        room = self.registry.lookup(code)
        if room is None:
            raise RoomNotFound()
        if room.started:
            raise GameAlreadyStarted()
        previous = self.registry.code_for(connection_id)
        if previous and previous != room.code:
            self.leave(connection_id)
        with room.lock:
            if self.registry.lookup(room.code) is not room:
                raise RoomNotFound()
            if room.started:
                raise GameAlreadyStarted()
            self.registry.bind(connection_id, room.code)
            self.broadcaster.subscribe(connection_id, room.code)
        self.logger.info(f"[room-joined] room={room.code} connection={connection_id}")
        return room

    def set_name(self, connection_id: str, raw_name) -> None:
        room = self.registry.room_for(connection_id)
        if room is None:
            return
        if not isinstance(raw_name, str):
            raise InvalidName()
        name = raw_name.strip()[:self.max_name_length]
        if not name:
            raise InvalidName()
        with room.lock:
            room.add_player(connection_id, name)
            self.broadcaster.to_room(room.code, 'playerList', room.player_list())

    def leave(self, connection_id: str) -> None:
        """Handle an explicit leave or a transport disconnect."""
        code = self.registry.unbind(connection_id)
        if not code:
            return
        self.broadcaster.unsubscribe(connection_id, code)
        room = self.registry.lookup(code)
        if room is None:
            return
        with room.lock:
            room.remove_player(connection_id)
            if connection_id == room.host_id:
                self._teardown(room)
            else:
                self.broadcaster.to_room(room.code, 'playerList', room.player_list())

    def _teardown(self, room: Room) -> None:
        room.cancel_timer()
        self.broadcaster.to_room(room.code, 'hostLeft', None)
        self.registry.destroy(room.code)
        self.broadcaster.close(room.code)
        self.logger.info(f"[host-left] room={room.code} closed")

    # ---- Game flow ----

    def start_game(self, connection_id: str, grade_level) -> None:
        room = self.registry.room_for(connection_id)
        if room is None:
            return
        with room.lock:
            if connection_id != room.host_id:
                raise NotHost()
            if grade_level not in self.grade_levels:
                raise InvalidGrade()
            if room.started:
                raise GameAlreadyStarted()
            if not candidate_pool(self.provider, grade_level):
                raise NoQuestionsAvailable()
            room.grade_level = grade_level
            room.started = True
            self.broadcaster.to_room(room.code, 'gameStarted', {'gradeLevel': grade_level})
            self.logger.info(f"[game-start] room={room.code} grade={grade_level} players={len(room.players)}")
            self._schedule(room, self.first_question_delay, self.advance_round)

    def advance_round(self, room: Room) -> None:
        """Draw, shuffle and broadcast the next question, then start its countdown."""
        with room.lock:
            if self.registry.lookup(room.code) is not room or not room.started or room.winner:
                return
            room.question_answered = False
            try:
                question = draw_question(room, self.provider, rng=self.rng)
            except NoQuestionsAvailable as exc:
                self.logger.error(f"[round-abort] room={room.code} grade={room.grade_level} no questions")
                self.broadcaster.to_room(room.code, 'error', {'message': exc.message})
                room.reset()
                self.broadcaster.to_room(room.code, 'gameReset', room.player_list())
                return
            question.answers, question.correct_index = shuffle_answers(
                question.answers, question.correct_index, rng=self.rng
            )
            room.current_question = question
            room.question_index += 1
            room.time_remaining = self.question_duration
            payload = question.to_dict()
            payload['questionNumber'] = room.question_index
            self.broadcaster.to_room(room.code, 'newQuestion', payload)
            self.logger.info(f"[round-start] room={room.code} question={room.question_index} id={question.id}")
            self._start_countdown(room)

    def _tick(self, room: Room) -> None:
        room.time_remaining -= 1
        self.broadcaster.to_room(room.code, 'timerUpdate', {'secondsRemaining': room.time_remaining})
        if room.time_remaining > 0:
            return
        room.cancel_timer()
        if room.question_answered:
            return
        room.question_answered = True
        self.broadcaster.to_room(room.code, 'timeUp', {
            'correctIndex': room.current_question.correct_index,
            'scores': room.player_list(),
        })
        self.logger.info(f"[timer-expired] room={room.code} question={room.question_index}")
        if not room.winner:
            self._schedule(room, self.next_question_delay, self.advance_round)

    def submit_answer(self, connection_id: str, answer_index) -> bool:
        """Returns True when this submission resolved the question."""
        room = self.registry.room_for(connection_id)
        if room is None:
            return False
        with room.lock:
            if not room.started or room.current_question is None or room.question_answered:
                return False
            player = room.players.get(connection_id)
            if player is None:
                return False
            if isinstance(answer_index, bool) or not isinstance(answer_index, int):
                return False
            if answer_index != room.current_question.correct_index:
                self.logger.debug(f"[answer-wrong] room={room.code} connection={connection_id}")
                return False

            room.question_answered = True
            room.cancel_timer()
            player.score += 1
            self.broadcaster.to_room(room.code, 'questionResult', {
                'winnerId': player.id,
                'winnerName': player.name,
                'correctIndex': room.current_question.correct_index,
                'scores': room.player_list(),
            })
            self.logger.info(f"[round-won] room={room.code} question={room.question_index} player={player.id} score={player.score}")

            winner = room.find_winner(self.winning_score)
            if winner:
                room.winner = winner
                self.broadcaster.to_room(room.code, 'gameOver', {
                    'winner': winner.to_dict(),
                    'scores': room.player_list(),
                })
                self.logger.info(f"[game-over] room={room.code} winner={winner.id}")
            else:
                self._schedule(room, self.next_question_delay, self.advance_round)
            return True

    def play_again(self, connection_id: str) -> None:
        room = self.registry.room_for(connection_id)
        if room is None:
            return
        with room.lock:
            if connection_id != room.host_id:
                raise NotHost('Only the host can restart the game')
            room.reset()
            self.broadcaster.to_room(room.code, 'gameReset', room.player_list())
            self.logger.info(f"[game-reset] room={room.code}")

    def post_chat(self, connection_id: str, text) -> None:
        room = self.registry.room_for(connection_id)
        if room is None or not isinstance(text, str):
            return
        with room.lock:
            player = room.players.get(connection_id)
            if player is None:
                return
            message = text.strip()[:self.max_chat_length]
            if not message:
                return
            self.broadcaster.to_room(room.code, 'chatMessage', {
                'playerId': player.id,
                'playerName': player.name,
                'message': message,
                'timestamp': int(time.time() * 1000),
            })

    # ---- Timers ----

    def _schedule(self, room: Room, delay: float, action) -> None:
        room.cancel_timer()
        room.timer = self.scheduler.call_later(delay, partial(self._fire_once, room, action))

    def _start_countdown(self, room: Room) -> None:
        room.cancel_timer()
        room.timer = self.scheduler.call_every(TICK_INTERVAL_SEC, partial(self._fire_tick, room))

    def _fire_once(self, room: Room, action, handle) -> None:
        with room.lock:
            if handle.cancelled or room.timer is not handle:
                return
            room.timer = None
            action(room)

    def _fire_tick(self, room: Room, handle) -> None:
        with room.lock:
            if handle.cancelled or room.timer is not handle:
                return
            self._tick(room)
