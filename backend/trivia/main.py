from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the trivia game server!'})


@main.route('/api/health')
def health_check():
    engine = current_app.extensions['trivia']
    return jsonify({
        'status': 'healthy',
        'rooms': len(engine.registry),
        'grade_levels': list(engine.grade_levels),
    })
