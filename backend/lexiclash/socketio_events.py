from flask import request
from flask_socketio import emit
from lexiclash import socketio, get_room_manager, NAMESPACE


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def handle_connect():
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(*_args):
    get_room_manager().disconnects.handle_disconnect(_get_sid())


def handle_create_room(data):
    data = _payload(data)
    get_room_manager().session.create_room(
        _get_sid(), data.get('code'), data.get('roomName'), data.get('language'),
    )


def handle_join_room(data):
    data = _payload(data)
    get_room_manager().session.join_room(_get_sid(), data.get('code'), data.get('displayName'))


def handle_leave_room(data=None):
    get_room_manager().session.leave_room(_get_sid())


def handle_close_room(data=None):
    get_room_manager().session.close_room(_get_sid(), _payload(data).get('code'))


def handle_start_round(data):
    data = _payload(data)
    get_room_manager().session.start_round(
        _get_sid(), data.get('grid'), data.get('durationSeconds'), data.get('language'),
    )


def handle_end_round(data=None):
    get_room_manager().session.end_round(_get_sid())


def handle_submit_word(data):
    word = _payload(data).get('word')
    if not isinstance(word, str) or not word.strip():
        emit('error', {'message': 'word is required'})
        return
    get_room_manager().session.submit_word(_get_sid(), word)


def handle_validate_words(data):
    get_room_manager().session.validate_words(_get_sid(), _payload(data).get('decisions'))


def handle_reset_round(data=None):
    get_room_manager().session.reset_round(_get_sid())


def handle_get_active_rooms(data=None):
    get_room_manager().session.active_rooms(_get_sid())


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('createRoom', handle_create_room, namespace=NAMESPACE)
    socketio.on_event('joinRoom', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('leaveRoom', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('closeRoom', handle_close_room, namespace=NAMESPACE)
    socketio.on_event('startRound', handle_start_round, namespace=NAMESPACE)
    socketio.on_event('endRound', handle_end_round, namespace=NAMESPACE)
    socketio.on_event('submitWord', handle_submit_word, namespace=NAMESPACE)
    socketio.on_event('validateWords', handle_validate_words, namespace=NAMESPACE)
    socketio.on_event('resetRound', handle_reset_round, namespace=NAMESPACE)
    socketio.on_event('getActiveRooms', handle_get_active_rooms, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
