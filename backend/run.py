from trivia import create_app, socketio

app = create_app()

if __name__ == '__main__':
    app.logger.info(f"Trivia game server running on http://localhost:{app.config['PORT']}")
    socketio.run(
        app,
        host=app.config['HOST'],
        port=app.config['PORT'],
        debug=app.config.get('DEBUG', False),
        allow_unsafe_werkzeug=True,
    )
