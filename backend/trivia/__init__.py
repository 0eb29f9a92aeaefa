import logging

import click
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from flask_sqlalchemy import SQLAlchemy

from config import Config

db = SQLAlchemy()
cors = CORS()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(getattr(logging, flask_app.config.get('LOG_LEVEL', 'INFO'), logging.INFO))

    origins = flask_app.config.get('CORS_ORIGINS') or '*'
    db.init_app(flask_app)
    cors.init_app(flask_app, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from trivia.main import main
    flask_app.register_blueprint(main)

    from trivia.services.games import GameEngine, RoomRegistry
    from trivia.services.games.questions import DatabaseQuestionProvider, load_question_bank, seed_questions
    from trivia.services.games.scheduler import BackgroundScheduler
    from trivia.socketio_events import SocketIOBroadcaster, register_socketio_handlers

    with flask_app.app_context():
        from trivia.models import Question
        db.create_all()
        if flask_app.config.get('AUTO_SEED_QUESTIONS') and Question.query.first() is None:
            added = seed_questions(load_question_bank(flask_app.config.get('QUESTION_BANK_PATH')))
            if added:
                flask_app.logger.info(f"[questions-seeded] added={added}")

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    engine = GameEngine.from_config(
        flask_app.config,
        registry=RoomRegistry(question_duration=int(flask_app.config.get('QUESTION_DURATION_SEC', 15))),
        provider=DatabaseQuestionProvider(),
        scheduler=BackgroundScheduler(flask_app, socketio),
        broadcaster=SocketIOBroadcaster(socketio, namespace=namespace),
        logger=flask_app.logger,
    )
    flask_app.extensions['trivia'] = engine
    register_socketio_handlers(namespace=namespace)

    @click.command('seed-questions')
    @click.option('--reset', is_flag=True, help='Delete existing questions first.')
    @click.option('--path', default=None, help='Question bank JSON file.')
    def seed_questions_command(reset, path):
        """Loads the question bank into the database."""
        with flask_app.app_context():
            added = seed_questions(load_question_bank(path), reset=reset)
            print(f'Added {added} questions.')

    flask_app.cli.add_command(seed_questions_command)

    return flask_app
