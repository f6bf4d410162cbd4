from flask import Blueprint, current_app, jsonify
from planning_poker.socketio_events import get_lock, get_registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the planning poker server!'})


@main.route('/health')
def health():
    return jsonify({'status': 'ok', 'rooms': len(get_registry())})


@main.route('/api/config')
def client_config():
    """Settings a client needs to render the deck and the start button."""
    cfg = current_app.config
    return jsonify({
        'deck': list(cfg['VOTE_DECK']),
        'minPlayersToStart': cfg['MIN_PLAYERS_TO_START'],
        'revealDelaySec': cfg['REVEAL_DELAY_SEC'],
        'strictMode': cfg['STRICT_MODE'],
        'defaultRoomId': cfg['DEFAULT_ROOM_ID'],
    })


@main.route('/api/rooms')
def list_rooms():
    registry = get_registry()
    with get_lock():
        rooms = []
        for room_id in registry.room_ids():
            session = registry.get(room_id)
            rooms.append({
                'roomId': room_id,
                'players': len(session),
                'gamePhase': session.phase.value,
            })
    return jsonify(rooms)


@main.route('/api/rooms/<string:room_id>/state')
def room_state(room_id):
    with get_lock():
        session = get_registry().get(room_id)
        if session is None:
            return jsonify({'error': 'Room not found'}), 404
        return jsonify(session.snapshot())
