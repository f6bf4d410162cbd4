import time
from typing import Callable, Dict, Set, Tuple

from planning_poker import socketio


_scheduled_reveals: Set[Tuple[str, int]] = set()
_evict_deadlines: Dict[str, float] = {}


def schedule_reveal(app, room_id: str, round_number: int, delay: float,
                    fire: Callable[[str, int], None]) -> bool:
    """Reveal the results of ``round_number`` after ``delay`` seconds.

    - At most one reveal per (room, round); later requests are skipped
    - Runs as a Socket.IO background task and sleeps cooperatively
    - Always fires; ``fire`` decides whether the round is still current
    """
    key = (room_id, round_number)
    if key in _scheduled_reveals:
        app.logger.info(f"[reveal-skip] room={room_id} round={round_number} already scheduled")
        return False
    _scheduled_reveals.add(key)
    app.logger.info(f"[reveal-set] room={room_id} round={round_number} delay={delay}s")

    def _worker(rid: str, expected_round: int, wait: float):
        socketio.sleep(wait)
        _scheduled_reveals.discard((rid, expected_round))
        with app.app_context():
            app.logger.info(f"[reveal-fire] room={rid} round={expected_round}")
            fire(rid, expected_round)

    socketio.start_background_task(_worker, room_id, round_number, delay)
    return True


def schedule_eviction(app, room_id: str, grace: float,
                      fire: Callable[[str], None]) -> None:
    """Evict an empty room once it has stayed empty for ``grace`` seconds."""
    if grace <= 0:
        _evict_deadlines.pop(room_id, None)
        fire(room_id)
        return
    deadline = time.time() + grace
    _evict_deadlines[room_id] = deadline

    def _runner(rid: str, expected_deadline: float):
        socketio.sleep(max(0.0, expected_deadline - time.time()))
        if _evict_deadlines.get(rid) != expected_deadline:
            return
        _evict_deadlines.pop(rid, None)
        with app.app_context():
            fire(rid)

    socketio.start_background_task(_runner, room_id, deadline)


def cancel_eviction(room_id: str) -> None:
    _evict_deadlines.pop(room_id, None)


def reset() -> None:
    _scheduled_reveals.clear()
    _evict_deadlines.clear()
