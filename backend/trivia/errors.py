"""User-facing errors raised by the game services.

Every error is recoverable: the Socket.IO gateway reports it to the
originating connection as an ``error`` event and keeps the connection open.
"""


class TriviaError(Exception):
    message = 'Something went wrong'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCode(TriviaError):
    message = 'Game code must be exactly 8 alphanumeric characters'


class DuplicateCode(TriviaError):
    message = 'A game with this code already exists'


class RoomNotFound(TriviaError):
    message = 'Game not found'


class GameAlreadyStarted(TriviaError):
    message = 'Game has already started'


class InvalidName(TriviaError):
    message = 'Please enter a valid name'


class NotHost(TriviaError):
    message = 'Only the host can start the game'


class InvalidGrade(TriviaError):
    message = 'Invalid grade level'


class NoQuestionsAvailable(TriviaError):
    message = 'No questions available for this grade level'
