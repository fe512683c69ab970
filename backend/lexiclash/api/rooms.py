from flask import Blueprint, jsonify, current_app
from lexiclash import get_room_manager
from lexiclash.services.rooms import scoring
from lexiclash.services.rooms.session import normalize_code


rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['GET'])
def list_rooms():
    summary = get_room_manager().registry.summary()
    return jsonify({'rooms': summary, 'count': len(summary)})


@rooms.route('/<string:code>', methods=['GET'])
def get_room_state(code):
    manager = get_room_manager()
    code = normalize_code(code)
    room = manager.registry.get(code)
    if room is not None:
        with room.lock:
            if room.alive:
                payload = room.summary()
                payload.update({
                    'active': True,
                    'hostConnected': room.host_connected,
                    'users': room.active_names(),
                    'remainingSeconds': room.remaining_seconds(manager.session.clock()),
                    'leaderboard': scoring.leaderboard(room),
                })
                return jsonify(payload)

    # Fall back to the last durable snapshot of a room that is no longer live
    store = current_app.extensions.get('snapshots')
    snapshot = store.get(code) if store else None
    if snapshot is None:
        return jsonify({'error': 'Room not found'}), 404
    snapshot['active'] = False
    return jsonify(snapshot)
