"""Planning poker domain: room sessions, the room registry, result
computation and the deferred reveal scheduler.

The session store is pure and is driven by the Socket.IO handlers in
``planning_poker.socketio_events``.
"""
