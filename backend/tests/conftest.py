import os
import sys
import pytest

# Ensure the backend root (containing the `roomrelay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from roomrelay import create_app, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    HOST = '127.0.0.1'
    PORT = 3001
    ROOM_CODE_LENGTH = 6
    ROOM_CODE_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
    CORS_ALLOWED_ORIGINS = ['http://localhost:5173']
    SERVE_STATIC = False
    STATIC_DIR = 'dist'


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def router(flask_app):
    return flask_app.extensions['roomrelay']


@pytest.fixture()
def registry(router):
    return router.registry


@pytest.fixture()
def connect(flask_app):
    """Factory: connect a Socket.IO test client to one namespace.

    Returns (test_client, sid); the sid comes from the 'connected' event.
    """
    opened = []

    def _connect(namespace):
        test_client = socketio.test_client(flask_app, namespace=namespace)
        received = test_client.get_received(namespace)
        sid = next(pkt['args'][0]['id'] for pkt in received if pkt['name'] == 'connected')
        opened.append((test_client, namespace))
        return test_client, sid

    yield _connect

    for test_client, namespace in opened:
        try:
            if test_client.is_connected(namespace):
                test_client.disconnect(namespace=namespace)
        except Exception:
            pass

