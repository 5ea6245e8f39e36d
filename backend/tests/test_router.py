import logging

import pytest

from roomrelay.relay import BroadcastRelay, Delivery
from roomrelay.rooms import RoomRegistry
from roomrelay.socketio_events import (
    CHAT_NAMESPACE,
    EVENT_TABLES,
    UPDATE_NAMESPACE,
    ChannelRouter,
)


class RecordingRelay:
    def __init__(self):
        self.deliveries = []
        self.rooms = {}

    def enter(self, namespace, sid, room):
        self.rooms.setdefault((namespace, room), set()).add(sid)

    def leave(self, namespace, sid, room):
        self.rooms.get((namespace, room), set()).discard(sid)

    def deliver(self, rule, namespace, event, data, sid=None, room=None):
        self.deliveries.append((rule, namespace, event, data, sid, room))

    def events(self, name):
        return [d for d in self.deliveries if d[2] == name]


@pytest.fixture()
def relay():
    return RecordingRelay()


@pytest.fixture()
def router(relay):
    return ChannelRouter(RoomRegistry(), relay, logging.getLogger('test-router'))


def test_event_tables_bind_every_event_to_a_router_method():
    assert set(EVENT_TABLES) == {CHAT_NAMESPACE, UPDATE_NAMESPACE}
    assert set(EVENT_TABLES[CHAT_NAMESPACE]) == {
        'connect', 'setName', 'generateCode', 'sendMessage', 'joinVoiceRoom', 'disconnect'
    }
    assert set(EVENT_TABLES[UPDATE_NAMESPACE]) == {
        'connect', 'setID', 'setName', 'joinRoom', 'createRoom', 'updateWishlist', 'disconnect'
    }
    for events in EVENT_TABLES.values():
        for binding in events.values():
            assert callable(getattr(ChannelRouter, binding.handler))
            assert all(isinstance(rule, Delivery) for rule in binding.rules)


def test_lifecycle_create_then_disconnect(router, relay):
    registry = router.registry
    router.update_connect('a')
    router.update_create_room('a')

    (ack,) = relay.events('generateCode')
    code = ack[3]
    assert ack[0] is Delivery.SENDER_ONLY and ack[4] == 'a'
    assert router.update_sessions.get('a').room_code == code
    assert relay.rooms[(UPDATE_NAMESPACE, code)] == {'a'}
    assert len(registry) == 1

    router.update_disconnect('a')

    assert len(registry) == 0
    assert relay.rooms[(UPDATE_NAMESPACE, code)] == set()


def test_join_room_invalid_code_does_not_mutate(router, relay):
    router.update_connect('a')
    for bad in ('ZZZZZZ', '', None, ['list']):
        router.update_join_room('a', bad)

    invalid = relay.events('invalidRoomCode')
    assert len(invalid) == 4
    assert all(d[0] is Delivery.SENDER_ONLY and d[4] == 'a' for d in invalid)
    assert len(router.registry) == 0
    assert router.update_sessions.get('a').room_code is None


def test_rejoining_same_room_keeps_single_membership(router, relay):
    router.update_connect('a')
    router.update_create_room('a')
    code = relay.events('generateCode')[0][3]

    router.update_join_room('a', code)

    assert router.registry.get(code).members == {'a'}


def test_joining_another_room_releases_previous(router, relay):
    router.update_connect('a')
    router.update_connect('b')
    router.update_create_room('a')
    router.update_create_room('b')
    code_a, code_b = [d[3] for d in relay.events('generateCode')]

    router.update_join_room('b', code_a)

    assert code_b not in router.registry
    assert router.registry.get(code_a).members == {'a', 'b'}


def test_wishlist_fans_out_to_room(router, relay):
    router.update_connect('a')
    router.update_create_room('a')
    code = relay.events('generateCode')[0][3]

    router.update_wishlist('a', ['x', 'y'])

    (update,) = relay.events('wishlistUpdated')
    assert update[0] is Delivery.ROOM
    assert update[3] == ['x', 'y']
    assert update[5] == code


def test_wishlist_from_unaffiliated_connection_is_dropped(router, relay):
    router.update_connect('a')
    router.update_wishlist('a', ['x'])
    assert relay.events('wishlistUpdated') == []


def test_set_id_goes_to_all(router, relay):
    router.update_connect('a')
    router.update_set_id('a')
    (set_id,) = relay.events('setID')
    assert set_id[0] is Delivery.ALL
    assert set_id[3] == 'a'


def test_voice_join_order_announce_then_peer_list(router, relay):
    router.chat_connect('a')
    router.chat_connect('b')
    router.chat_join_voice_room('a', 'VOICE1')
    assert relay.events('newVoicePeer') == []
    assert relay.events('existingVoicePeers') == []

    router.chat_join_voice_room('b', 'VOICE1')

    voice = [d for d in relay.deliveries if d[2] in ('newVoicePeer', 'existingVoicePeers')]
    assert voice == [
        (Delivery.ROOM_EXCEPT_SENDER, CHAT_NAMESPACE, 'newVoicePeer', 'b', 'b', 'VOICE1'),
        (Delivery.SENDER_ONLY, CHAT_NAMESPACE, 'existingVoicePeers', ['a'], 'b', None),
    ]


def test_send_message_falls_back_to_current_chat_room(router, relay):
    router.chat_connect('a')
    router.chat_generate_code('a', 'room01')
    router.chat_send_message('a', {'message': 'hi'})

    (message,) = relay.events('broadcastMessage')
    assert message[0] is Delivery.ROOM_EXCEPT_SENDER
    assert message[3] == {'id': 'a', 'message': 'hi', 'name': ''}
    assert message[5] == 'ROOM01'


def test_send_message_malformed_payload_is_dropped(router, relay):
    router.chat_connect('a')
    router.chat_generate_code('a', 'ROOM01')
    router.chat_send_message('a', 'hi')
    router.chat_send_message('a', None)
    assert relay.events('broadcastMessage') == []


def test_events_from_unknown_session_are_ignored(router, relay):
    router.update_create_room('ghost')
    router.chat_send_message('ghost', {'message': 'boo', 'roomName': 'ROOM01'})
    router.update_disconnect('ghost')
    router.chat_disconnect('ghost')
    assert relay.deliveries == []
    assert len(router.registry) == 0


def test_broadcast_relay_rejects_unknown_rule():
    with pytest.raises(ValueError):
        BroadcastRelay(socketio=None).deliver('bogus', UPDATE_NAMESPACE, 'x', None)
