import os


def _as_bool(value, default):
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///trivia.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if o.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Round timing (seconds)
    QUESTION_DURATION_SEC = int(os.environ.get('QUESTION_DURATION_SEC', '15'))
    FIRST_QUESTION_DELAY_SEC = float(os.environ.get('FIRST_QUESTION_DELAY_SEC', '1'))
    NEXT_QUESTION_DELAY_SEC = float(os.environ.get('NEXT_QUESTION_DELAY_SEC', '3'))
    # First player to reach this score wins
    WINNING_SCORE = int(os.environ.get('WINNING_SCORE', '10'))
    MAX_NAME_LENGTH = 20
    MAX_CHAT_LENGTH = 200
    GRADE_LEVELS = ('6th', '7th', '8th')
    QUESTION_BANK_PATH = os.environ.get('QUESTION_BANK_PATH')
    # Seed the question table from the bundled bank when it is empty
    AUTO_SEED_QUESTIONS = _as_bool(os.environ.get('AUTO_SEED_QUESTIONS'), True)
