from lexiclash import NAMESPACE

from conftest import GRID


def _received(test_client):
    return [(pkt['name'], pkt['args'][0] if pkt['args'] else None) for pkt in test_client.get_received(NAMESPACE)]


def _named(packets, name):
    return [payload for event, payload in packets if event == name]


def _room(sio_factory):
    host, alice, bob = sio_factory(), sio_factory(), sio_factory()
    host.emit('createRoom', {'code': 'abcd', 'roomName': 'Party', 'language': 'en'}, namespace=NAMESPACE)
    alice.emit('joinRoom', {'code': 'ABCD', 'displayName': 'Alice'}, namespace=NAMESPACE)
    bob.emit('joinRoom', {'code': 'ABCD', 'displayName': 'Bob'}, namespace=NAMESPACE)
    return host, alice, bob


def test_socket_connect(sio_factory):
    sio_client = sio_factory()
    assert sio_client.is_connected(NAMESPACE)
    sio_client.emit('ping', {'n': 1}, namespace=NAMESPACE)
    assert _named(_received(sio_client), 'pong') == [{'n': 1}]


def test_create_and_join(sio_factory):
    host, alice, bob = _room(sio_factory)
    host_packets = _received(host)
    assert _named(host_packets, 'joined')[0]['code'] == 'ABCD'
    assert _named(host_packets, 'updateUsers')[-1] == {'users': ['Alice', 'Bob']}
    joined = _named(_received(alice), 'joined')
    assert joined[0]['username'] == 'Alice' and joined[0]['isHost'] is False


def test_rejections_go_to_sender_only(sio_factory):
    host, alice, bob = _room(sio_factory)
    for test_client in (host, alice, bob):
        test_client.get_received(NAMESPACE)

    stranger = sio_factory()
    stranger.emit('joinRoom', {'code': 'ABCD', 'displayName': 'Alice'}, namespace=NAMESPACE)
    stranger.emit('joinRoom', {'code': 'NOPE', 'displayName': 'Zed'}, namespace=NAMESPACE)
    packets = _received(stranger)
    assert _named(packets, 'usernameTaken') == [{'code': 'ABCD'}]
    assert _named(packets, 'gameDoesNotExist') == [{'code': 'NOPE'}]
    assert _named(_received(alice), 'usernameTaken') == []


def test_full_round(sio_factory):
    host, alice, bob = _room(sio_factory)
    host.emit('startRound', {'grid': GRID, 'durationSeconds': 60}, namespace=NAMESPACE)
    assert _named(_received(alice), 'startGame')[0]['grid'] == GRID

    alice.emit('submitWord', {'word': 'cat'}, namespace=NAMESPACE)
    alice.emit('submitWord', {'word': 'cat'}, namespace=NAMESPACE)
    bob.emit('submitWord', {'word': 'quiz'}, namespace=NAMESPACE)
    packets = _received(alice)
    assert _named(packets, 'wordAccepted') == [{'word': 'cat'}]
    assert _named(packets, 'wordAlreadyFound') == [{'word': 'cat'}]

    host.emit('endRound', namespace=NAMESPACE)
    host_packets = _received(host)
    review = _named(host_packets, 'showValidation')[0]
    assert review['autoValidated'] == ['cat']
    assert [item['word'] for item in review['worklist']] == ['quiz']
    assert _named(_received(bob), 'endGame') == [{'reason': 'host'}]

    host.emit('validateWords', {'decisions': [{'word': 'quiz', 'isValid': True}]}, namespace=NAMESPACE)
    result = _named(_received(bob), 'validatedScores')[0]
    assert {r['username']: r['score'] for r in result['scores']} == {'Alice': 1, 'Bob': 1}

    host.emit('resetRound', namespace=NAMESPACE)
    assert _named(_received(alice), 'resetGame') == [{'code': 'ABCD'}]


def test_submit_requires_word(sio_factory):
    host, alice, bob = _room(sio_factory)
    alice.get_received(NAMESPACE)
    alice.emit('submitWord', {}, namespace=NAMESPACE)
    assert _named(_received(alice), 'error') == [{'message': 'word is required'}]


def test_host_disconnect_closes_after_grace(sio_factory, scheduler):
    host, alice, bob = _room(sio_factory)
    alice.get_received(NAMESPACE)
    host.disconnect(namespace=NAMESPACE)
    assert _named(_received(alice), 'hostDisconnected') == [{'graceSeconds': 300}]

    scheduler.advance(300)
    closing = _named(_received(alice), 'hostLeftRoomClosing')
    assert len(closing) == 1


def test_player_reconnect(sio_factory, scheduler):
    host, alice, bob = _room(sio_factory)
    cara = sio_factory()
    cara.emit('joinRoom', {'code': 'ABCD', 'displayName': 'Cara'}, namespace=NAMESPACE)
    host.emit('startRound', {'grid': GRID, 'durationSeconds': 60}, namespace=NAMESPACE)
    alice.emit('submitWord', {'word': 'cat'}, namespace=NAMESPACE)
    alice.disconnect(namespace=NAMESPACE)
    assert _named(_received(bob), 'playerDisconnected')[-1]['username'] == 'Alice'

    scheduler.advance(5)
    alice_again = sio_factory()
    alice_again.emit('joinRoom', {'code': 'ABCD', 'displayName': 'Alice'}, namespace=NAMESPACE)
    joined = _named(_received(alice_again), 'joined')[0]
    assert joined['rebound'] is True and joined['words'] == ['cat']


def test_active_rooms_listing(sio_factory):
    _room(sio_factory)
    watcher = sio_factory()
    watcher.emit('getActiveRooms', namespace=NAMESPACE)
    listing = _named(_received(watcher), 'activeRooms')[-1]
    assert listing['count'] == 1
    assert listing['rooms'][0]['roomName'] == 'Party'
