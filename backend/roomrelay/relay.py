from enum import Enum


class Delivery(Enum):
    ROOM_EXCEPT_SENDER = 'room_except_sender'
    ROOM = 'room'
    SENDER_ONLY = 'sender_only'
    ALL = 'all'


class BroadcastRelay:
    """Delivery rules on top of a Flask-SocketIO server.

    Emits are fire-and-forget; delivery confirmation belongs to the
    transport.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def enter(self, namespace, sid, room):
        self.socketio.server.enter_room(sid, room, namespace=namespace)

    def leave(self, namespace, sid, room):
        self.socketio.server.leave_room(sid, room, namespace=namespace)

    def deliver(self, rule, namespace, event, data, sid=None, room=None):
        if rule is Delivery.ROOM_EXCEPT_SENDER:
            self.socketio.emit(event, data, to=room, namespace=namespace, skip_sid=sid)
        elif rule is Delivery.ROOM:
            self.socketio.emit(event, data, to=room, namespace=namespace)
        elif rule is Delivery.SENDER_ONLY:
            self.socketio.emit(event, data, to=sid, namespace=namespace)
        elif rule is Delivery.ALL:
            self.socketio.emit(event, data, namespace=namespace)
        else:
            raise ValueError(f"unknown delivery rule {rule!r}")
