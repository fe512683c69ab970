from flask import Blueprint, jsonify
from lexiclash import get_room_manager

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the LexiClash room server!'})

@main.route('/health')
def health():
    manager = get_room_manager()
    return jsonify({'status': 'ok', 'rooms': manager.registry.count()})
