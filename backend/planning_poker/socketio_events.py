from flask_socketio import join_room, leave_room, emit
from planning_poker import socketio
from flask import current_app, request
from planning_poker.services.poker import scheduler
from planning_poker.services.poker.exceptions import PokerError, UnknownParticipant
from planning_poker.services.poker.registry import RoomRegistry, normalize_room_id
from planning_poker.services.poker.session import (
    COUNTDOWN_START,
    Join,
    Leave,
    NextRound,
    Reveal,
    RoomSession,
    StartVoting,
    SubmitVote,
    clean_name,
)
from functools import partial
from typing import Dict, List, Optional
import threading


# Serializes every session mutation together with its broadcast
_lock = threading.RLock()
_registry = RoomRegistry()
_sid_to_room: Dict[str, str] = {}
_namespace = '/'


def get_registry() -> RoomRegistry:
    return _registry


def get_lock():
    return _lock


def room_name(room_id: str) -> str:
    return f"poker:{room_id}"


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _broadcast(room_id: str, events) -> None:
    for event in events:
        if event.payload is None:
            socketio.emit(event.name, to=room_name(room_id), namespace=_namespace)
        else:
            socketio.emit(event.name, event.payload, to=room_name(room_id), namespace=_namespace)


def _reject(exc: PokerError, action: str, room_id: Optional[str]) -> None:
    current_app.logger.info(
        f"[reject] action={action} room={room_id} sid={_get_sid()} code={exc.code} reason={exc.message}"
    )
    if current_app.config.get('STRICT_MODE'):
        emit('error', exc.to_dict())


def _dispatch(room_id: str, command) -> List:
    """Apply ``command`` to the room and broadcast what it produced.

    Must be called with ``_lock`` held.
    """
    session = _registry.get_or_create(room_id)
    events = session.apply(command)
    _broadcast(room_id, events)
    if any(e.name == COUNTDOWN_START for e in events) and session.pending_reveal is not None:
        app = current_app._get_current_object()
        scheduler.schedule_reveal(
            app, room_id, session.pending_reveal.round_number, session.reveal_delay, _fire_reveal
        )
    return events


def _fire_reveal(room_id: str, round_number: int) -> None:
    with _lock:
        session = _registry.get(room_id)
        if session is None:
            current_app.logger.info(f"[reveal-abort] room={room_id} round={round_number} room gone")
            return
        events = session.apply(Reveal(round_number))
        if events:
            _broadcast(room_id, events)
            current_app.logger.info(f"[reveal] room={room_id} round={round_number} phase={session.phase.value}")
        else:
            current_app.logger.info(f"[reveal-abort] room={room_id} round={round_number} round superseded")
        # Eviction is held back while a reveal is pending
        if session.is_empty:
            _schedule_eviction(room_id)


def _evict(room_id: str) -> None:
    with _lock:
        if _registry.evict_if_empty(room_id):
            current_app.logger.info(f"[evict] room={room_id}")


def _current_room(action: str) -> Optional[str]:
    room_id = _sid_to_room.get(_get_sid())
    if room_id is None:
        _reject(UnknownParticipant('connection has not joined a room'), action, None)
    return room_id


def _leave_current_room(sid: str) -> None:
    room_id = _sid_to_room.pop(sid, None)
    if room_id is None:
        return
    leave_room(room_name(room_id), sid=sid, namespace=_namespace)
    session = _registry.get(room_id)
    name = session.participants[sid].name if session and sid in session.participants else 'unknown'
    try:
        _dispatch(room_id, Leave(sid))
    except PokerError as exc:
        current_app.logger.warning(f"[leave] room={room_id} sid={sid} {exc.message}")
        return
    current_app.logger.info(f"[leave] room={room_id} name={name} remaining={len(_registry.get(room_id))}")
    if _registry.get(room_id).is_empty:
        _schedule_eviction(room_id)


def _schedule_eviction(room_id: str) -> None:
    scheduler.schedule_eviction(
        current_app._get_current_object(),
        room_id,
        float(current_app.config.get('ROOM_EVICT_GRACE_SEC', 30)),
        _evict,
    )


def handle_connect():
    cfg = current_app.config
    emit('connected', {
        'sid': _get_sid(),
        'deck': list(cfg['VOTE_DECK']),
        'minPlayersToStart': cfg['MIN_PLAYERS_TO_START'],
        'revealDelaySec': cfg['REVEAL_DELAY_SEC'],
    })


def handle_disconnect(*args):
    with _lock:
        _leave_current_room(_get_sid())


def handle_join_game(data=None):
    # Accept a bare name (single room clients) or {'name': ..., 'room': ...}
    if isinstance(data, dict):
        name = data.get('name')
        requested_room = data.get('room') or current_app.config['DEFAULT_ROOM_ID']
    else:
        name = data
        requested_room = current_app.config['DEFAULT_ROOM_ID']
    sid = _get_sid()
    with _lock:
        try:
            room_id = normalize_room_id(requested_room)
            # Validate before touching the current room so a rejected join leaves it intact
            clean_name(name, int(current_app.config['MAX_NAME_LENGTH']))
        except PokerError as exc:
            _reject(exc, 'join', _sid_to_room.get(sid))
            return
        previous = _sid_to_room.get(sid)
        if previous is not None and previous != room_id:
            _leave_current_room(sid)
        # Join the broadcast room first so the joiner receives the snapshot
        join_room(room_name(room_id))
        try:
            _dispatch(room_id, Join(sid, name))
        except PokerError as exc:
            if sid not in _sid_to_room:
                leave_room(room_name(room_id))
                _evict_if_abandoned(room_id)
            _reject(exc, 'join', room_id)
            return
        _sid_to_room[sid] = room_id
        scheduler.cancel_eviction(room_id)
        current_app.logger.info(f"[join] room={room_id} sid={sid} name={name.strip()} players={len(_registry.get(room_id))}")


def _evict_if_abandoned(room_id: str) -> None:
    if _registry.evict_if_empty(room_id):
        current_app.logger.info(f"[evict] room={room_id} abandoned after rejected join")


def handle_leave_game(data=None):
    with _lock:
        _leave_current_room(_get_sid())


def handle_start_voting(data=None):
    with _lock:
        room_id = _current_room('start-voting')
        if room_id is None:
            return
        try:
            _dispatch(room_id, StartVoting(_get_sid()))
        except PokerError as exc:
            _reject(exc, 'start-voting', room_id)
            return
        session = _registry.get(room_id)
        current_app.logger.info(f"[start] room={room_id} round={session.round_number} players={len(session)}")


def handle_submit_vote(value=None):
    with _lock:
        room_id = _current_room('submit-vote')
        if room_id is None:
            return
        try:
            _dispatch(room_id, SubmitVote(_get_sid(), value))
        except PokerError as exc:
            _reject(exc, 'submit-vote', room_id)
            return
        progress = _registry.get(room_id).vote_progress()
        current_app.logger.info(
            f"[vote] room={room_id} sid={_get_sid()} value={value} "
            f"voted={progress['votedCount']}/{progress['totalPlayers']}"
        )


def handle_next_round(data=None):
    with _lock:
        room_id = _current_room('next-round')
        if room_id is None:
            return
        _dispatch(room_id, NextRound(_get_sid()))
        current_app.logger.info(f"[next_round] room={room_id}")


def handle_ping(data=None):
    emit('pong', data or {})


def configure_rooms(app) -> None:
    """Reset room state and bind new sessions to the app's poker settings."""
    global _namespace
    cfg = app.config
    with _lock:
        _registry.clear()
        _sid_to_room.clear()
        scheduler.reset()
        _registry.configure(partial(
            RoomSession,
            deck=cfg['VOTE_DECK'],
            min_players_to_start=int(cfg['MIN_PLAYERS_TO_START']),
            reveal_delay=float(cfg['REVEAL_DELAY_SEC']),
            max_name_length=int(cfg['MAX_NAME_LENGTH']),
        ))
        _namespace = cfg.get('SOCKETIO_NAMESPACE', '/')


def register_socketio_handlers(app) -> None:
    """Register Socket.IO event handlers on the configured namespace."""
    configure_rooms(app)
    socketio.on_event('connect', handle_connect, namespace=_namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=_namespace)
    socketio.on_event('join-game', handle_join_game, namespace=_namespace)
    socketio.on_event('leave-game', handle_leave_game, namespace=_namespace)
    socketio.on_event('start-voting', handle_start_voting, namespace=_namespace)
    socketio.on_event('submit-vote', handle_submit_vote, namespace=_namespace)
    socketio.on_event('next-round', handle_next_round, namespace=_namespace)
    socketio.on_event('ping', handle_ping, namespace=_namespace)
