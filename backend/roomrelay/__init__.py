from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

from roomrelay.config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config['CORS_ALLOWED_ORIGINS']

    CORS(flask_app, supports_credentials=True, origins=allowed_origins, methods=['GET', 'POST'])

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins, cors_credentials=True)

    from roomrelay.main import main
    flask_app.register_blueprint(main)

    # One registry per app so test instances stay isolated
    from roomrelay.relay import BroadcastRelay
    from roomrelay.rooms import RoomRegistry
    from roomrelay.socketio_events import ChannelRouter, register_socketio_handlers

    registry = RoomRegistry(
        code_length=flask_app.config['ROOM_CODE_LENGTH'],
        alphabet=flask_app.config['ROOM_CODE_ALPHABET'],
        logger=flask_app.logger,
    )
    router = ChannelRouter(registry, BroadcastRelay(socketio), flask_app.logger)
    flask_app.extensions['roomrelay'] = router
    register_socketio_handlers(router)

    return flask_app
