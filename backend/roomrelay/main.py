import os

from flask import Blueprint, current_app, jsonify, send_from_directory

main = Blueprint('main', __name__)


def _static_dir():
    return os.path.join(os.getcwd(), current_app.config['STATIC_DIR'])


@main.route('/health')
def health():
    registry = current_app.extensions['roomrelay'].registry
    return jsonify({'status': 'ok', 'rooms': len(registry)})


@main.route('/')
def index():
    if current_app.config.get('SERVE_STATIC'):
        return send_from_directory(_static_dir(), 'index.html')
    return jsonify({'message': 'Welcome to the room relay server!'})


@main.route('/<path:filename>')
def static_files(filename):
    if not current_app.config.get('SERVE_STATIC'):
        return jsonify({'error': 'Not found'}), 404
    return send_from_directory(_static_dir(), filename)
