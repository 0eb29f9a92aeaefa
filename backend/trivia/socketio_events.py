from functools import wraps

from flask import current_app, request
from flask_socketio import emit

from trivia.errors import TriviaError


class SocketIOBroadcaster:
    """Publishes engine events to Socket.IO rooms named after the game code."""

    def __init__(self, socketio, namespace='/'):
        self.socketio = socketio
        self.namespace = namespace

    def to_room(self, code, event, payload):
        # Usable from background tasks; no request context needed
        if payload is None:
            self.socketio.emit(event, to=code, namespace=self.namespace)
        else:
            self.socketio.emit(event, payload, to=code, namespace=self.namespace)

    def subscribe(self, sid, code):
        self.socketio.server.enter_room(sid, code, namespace=self.namespace)

    def unsubscribe(self, sid, code):
        self.socketio.server.leave_room(sid, code, namespace=self.namespace)

    def close(self, code):
        self.socketio.server.close_room(code, namespace=self.namespace)


def _engine():
    return current_app.extensions['trivia']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload_value(data, key):
    """Clients may send the bare value or an object carrying it under ``key``."""
    if isinstance(data, dict):
        return data.get(key)
    return data


def _reports_errors(handler):
    @wraps(handler)
    def wrapper(*args):
        try:
            return handler(*args)
        except TriviaError as exc:
            current_app.logger.debug(f"[rejected] event={handler.__name__} sid={_get_sid()} reason={exc.message}")
            emit('error', {'message': exc.message})
    return wrapper


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    _engine().leave(_get_sid())


@_reports_errors
def handle_create_game(data=None):
    room = _engine().create_room(_payload_value(data, 'code'), _get_sid())
    emit('gameCreated', {'code': room.code, 'isHost': True})


@_reports_errors
def handle_join_game(data=None):
    room = _engine().join_room(_payload_value(data, 'code'), _get_sid())
    emit('gameJoined', {'code': room.code, 'isHost': False})


@_reports_errors
def handle_set_name(data=None):
    _engine().set_name(_get_sid(), _payload_value(data, 'name'))


@_reports_errors
def handle_start_game(data=None):
    _engine().start_game(_get_sid(), _payload_value(data, 'gradeLevel'))


@_reports_errors
def handle_submit_answer(data=None):
    _engine().submit_answer(_get_sid(), _payload_value(data, 'answerIndex'))


@_reports_errors
def handle_chat_message(data=None):
    _engine().post_chat(_get_sid(), _payload_value(data, 'message'))


@_reports_errors
def handle_play_again(data=None):
    _engine().play_again(_get_sid())


def handle_leave_game(data=None):
    _engine().leave(_get_sid())


def register_socketio_handlers(namespace='/') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    from trivia import socketio

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('createGame', handle_create_game, namespace=namespace)
    socketio.on_event('joinGame', handle_join_game, namespace=namespace)
    socketio.on_event('setName', handle_set_name, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('submitAnswer', handle_submit_answer, namespace=namespace)
    socketio.on_event('chatMessage', handle_chat_message, namespace=namespace)
    socketio.on_event('playAgain', handle_play_again, namespace=namespace)
    socketio.on_event('leaveGame', handle_leave_game, namespace=namespace)
