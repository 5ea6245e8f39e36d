from collections import namedtuple
import random

from flask import request

from roomrelay import socketio
from roomrelay.relay import Delivery
from roomrelay.rooms import RoomNotFoundError
from roomrelay.sessions import ChannelGroups, SessionStore

CHAT_NAMESPACE = '/chat'
UPDATE_NAMESPACE = '/update'

INVALID_ROOM_CODE_REASON = 'Not a valid room code.'

EventBinding = namedtuple('EventBinding', ['handler', 'rules'])

CHAT_EVENTS = {
    'connect': EventBinding('chat_connect', (Delivery.SENDER_ONLY,)),
    'setName': EventBinding('chat_set_name', ()),
    'generateCode': EventBinding('chat_generate_code', ()),
    'sendMessage': EventBinding('chat_send_message', (Delivery.ROOM_EXCEPT_SENDER,)),
    'joinVoiceRoom': EventBinding(
        'chat_join_voice_room', (Delivery.ROOM_EXCEPT_SENDER, Delivery.SENDER_ONLY)
    ),
    'disconnect': EventBinding('chat_disconnect', ()),
}

UPDATE_EVENTS = {
    'connect': EventBinding('update_connect', (Delivery.SENDER_ONLY,)),
    'setID': EventBinding('update_set_id', (Delivery.ALL,)),
    'setName': EventBinding('update_set_name', ()),
    'createRoom': EventBinding('update_create_room', (Delivery.SENDER_ONLY,)),
    'joinRoom': EventBinding('update_join_room', (Delivery.SENDER_ONLY,)),
    'updateWishlist': EventBinding('update_wishlist', (Delivery.ROOM,)),
    # Socket.IO servers in Python run the disconnect handler before the
    # connection leaves its rooms, so it doubles as the pre-teardown hook.
    'disconnect': EventBinding('update_disconnect', ()),
}

EVENT_TABLES = {
    CHAT_NAMESPACE: CHAT_EVENTS,
    UPDATE_NAMESPACE: UPDATE_EVENTS,
}


def default_player_name():
    return f"Player{random.randint(0, 999)}"


class ChannelRouter:
    """Socket.IO event handlers for the chat and update namespaces.

    Every handler takes the connection sid first, followed by the event
    arguments sent by the client. State lives in the injected registry
    and in per-namespace session stores.
    """

    def __init__(self, registry, relay, logger):
        self.registry = registry
        self.relay = relay
        self.logger = logger
        self.chat_sessions = SessionStore(CHAT_NAMESPACE)
        self.update_sessions = SessionStore(UPDATE_NAMESPACE)
        self.chat_groups = ChannelGroups()

    # ---- chat namespace ----

    def chat_connect(self, sid, auth=None):
        self.chat_sessions.open(sid, name='')
        self.logger.info(f"[connect] sid={sid} namespace={CHAT_NAMESPACE}")
        self.relay.deliver(Delivery.SENDER_ONLY, CHAT_NAMESPACE, 'connected', {'id': sid}, sid=sid)

    def chat_set_name(self, sid, name=None):
        session = self._session(self.chat_sessions, sid)
        if session is None:
            return
        if not isinstance(name, str):
            self.logger.warning(f"[set-name-ignored] sid={sid} name={name!r}")
            return
        session.name = name

    def chat_generate_code(self, sid, room_code=None):
        session = self._session(self.chat_sessions, sid)
        if session is None:
            return
        code = self._normalize(room_code)
        if code is None:
            self.logger.warning(f"[chat-join-ignored] sid={sid} room_code={room_code!r}")
            return
        self._join_chat_group(session, code)

    def chat_send_message(self, sid, payload=None):
        session = self._session(self.chat_sessions, sid)
        if session is None:
            return
        if not isinstance(payload, dict):
            self.logger.warning(f"[message-ignored] sid={sid} malformed payload")
            return
        code = self._normalize(payload.get('roomName')) or session.room_code
        if code is None or code not in session.channels:
            self.logger.warning(f"[message-ignored] sid={sid} room={code} not joined")
            return
        message = payload.get('message')
        self.logger.debug(f"[message] sid={sid} room={code} message={message!r}")
        self.relay.deliver(
            Delivery.ROOM_EXCEPT_SENDER,
            CHAT_NAMESPACE,
            'broadcastMessage',
            {'id': sid, 'message': message, 'name': session.name},
            sid=sid,
            room=code,
        )

    def chat_join_voice_room(self, sid, room_code=None):
        session = self._session(self.chat_sessions, sid)
        if session is None:
            return
        code = self._normalize(room_code)
        if code is None:
            self.logger.warning(f"[voice-join-ignored] sid={sid} room_code={room_code!r}")
            return
        self._join_chat_group(session, code)
        peers = self.chat_groups.peers(code, sid)
        self.logger.info(f"[voice-join] sid={sid} room={code} peers={len(peers)}")
        if not peers:
            return
        self.relay.deliver(
            Delivery.ROOM_EXCEPT_SENDER, CHAT_NAMESPACE, 'newVoicePeer', sid, sid=sid, room=code
        )
        self.relay.deliver(
            Delivery.SENDER_ONLY, CHAT_NAMESPACE, 'existingVoicePeers', peers, sid=sid
        )

    def chat_disconnect(self, sid, reason=None):
        session = self.chat_sessions.close(sid)
        if session is not None:
            for code in session.channels:
                self.chat_groups.leave(code, sid)
        self.logger.info(f"[disconnect] sid={sid} namespace={CHAT_NAMESPACE}")

    # ---- update namespace ----

    def update_connect(self, sid, auth=None):
        self.update_sessions.open(sid, name=default_player_name())
        self.logger.info(f"[connect] sid={sid} namespace={UPDATE_NAMESPACE}")
        self.relay.deliver(Delivery.SENDER_ONLY, UPDATE_NAMESPACE, 'connected', {'id': sid}, sid=sid)

    def update_set_id(self, sid, *args):
        self.relay.deliver(Delivery.ALL, UPDATE_NAMESPACE, 'setID', sid)

    def update_set_name(self, sid, name=None):
        session = self._session(self.update_sessions, sid)
        if session is None:
            return
        if not isinstance(name, str):
            self.logger.warning(f"[set-name-ignored] sid={sid} name={name!r}")
            return
        session.name = name

    def update_create_room(self, sid, *args):
        session = self._session(self.update_sessions, sid)
        if session is None:
            return
        self._leave_room(session)
        room = self.registry.create()
        self._enter_room(session, room)
        self.logger.info(f"[room-create] code={room.code} sid={sid}")
        self.relay.deliver(Delivery.SENDER_ONLY, UPDATE_NAMESPACE, 'generateCode', room.code, sid=sid)

    def update_join_room(self, sid, room_code=None):
        session = self._session(self.update_sessions, sid)
        if session is None:
            return
        code = self._normalize(room_code)
        try:
            if code is None:
                raise RoomNotFoundError(room_code)
            room = self.registry.get(code)
        except RoomNotFoundError:
            self.logger.warning(f"[room-join-invalid] code={room_code!r} sid={sid}")
            self.relay.deliver(
                Delivery.SENDER_ONLY, UPDATE_NAMESPACE, 'invalidRoomCode', INVALID_ROOM_CODE_REASON, sid=sid
            )
            return
        if session.room_code != code:
            self._leave_room(session)
        self._enter_room(session, room)
        self.logger.info(f"[room-join] code={code} sid={sid} members={room.member_count()}")
        self.relay.deliver(Delivery.SENDER_ONLY, UPDATE_NAMESPACE, 'generateCode', code, sid=sid)
        wishlist = room.get_wishlist()
        if wishlist:
            self.relay.deliver(Delivery.SENDER_ONLY, UPDATE_NAMESPACE, 'wishlistUpdated', wishlist, sid=sid)

    def update_wishlist(self, sid, items=None):
        session = self._session(self.update_sessions, sid)
        if session is None:
            return
        if not session.in_room:
            self.logger.warning(f"[wishlist-ignored] sid={sid} is not in a room")
            return
        room = self.registry.lookup(session.room_code)
        if room is None:
            self.logger.warning(f"[wishlist-ignored] sid={sid} room={session.room_code} no longer exists")
            return
        if not isinstance(items, list):
            self.logger.warning(f"[wishlist-ignored] sid={sid} expected a list, got {type(items).__name__}")
            return
        room.set_wishlist(items)
        self.relay.deliver(
            Delivery.ROOM, UPDATE_NAMESPACE, 'wishlistUpdated', room.get_wishlist(), room=room.code
        )

    def update_disconnect(self, sid, reason=None):
        session = self.update_sessions.close(sid)
        if session is not None:
            self._leave_room(session)
        self.logger.info(f"[disconnect] sid={sid} namespace={UPDATE_NAMESPACE}")

    # ---- helpers ----

    def _session(self, store, sid):
        session = store.get(sid)
        if session is None:
            self.logger.warning(f"[no-session] sid={sid} namespace={store.namespace}")
        return session

    def _normalize(self, room_code):
        if not isinstance(room_code, str) or not room_code.strip():
            return None
        return self.registry.normalize(room_code)

    def _join_chat_group(self, session, code):
        if code not in self.registry:
            self.logger.debug(f"[chat-join] code={code} is not a registered room")
        self.chat_groups.join(code, session.sid)
        session.channels.add(code)
        session.room_code = code
        self.relay.enter(CHAT_NAMESPACE, session.sid, code)

    def _enter_room(self, session, room):
        room.add_player(session.sid)
        session.room_code = room.code
        session.channels.add(room.code)
        self.relay.enter(UPDATE_NAMESPACE, session.sid, room.code)

    def _leave_room(self, session):
        code = session.room_code
        if code is None:
            return
        session.room_code = None
        session.channels.discard(code)
        self.relay.leave(UPDATE_NAMESPACE, session.sid, code)
        if self.registry.release(code, session.sid):
            self.logger.info(f"[room-delete] code={code} no longer exists")


def _bind(handler):
    def _dispatch(*args):
        return handler(request.sid, *args)
    return _dispatch


def register_socketio_handlers(router) -> None:
    """Register the router's handlers on the '/chat' and '/update' namespaces."""
    for namespace, events in EVENT_TABLES.items():
        for event, binding in events.items():
            socketio.on_event(event, _bind(getattr(router, binding.handler)), namespace=namespace)
