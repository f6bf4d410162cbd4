import os

# Named decks; VOTE_DECK may also be a comma separated list of numbers
DECKS = {
    'linear': (1, 2, 3, 5, 10),
    'fibonacci': (1, 2, 3, 5, 8, 13, 21, 34, 55, 89),
}


def parse_deck(raw):
    """Resolve a deck name or comma separated list into a tuple of numbers."""
    raw = (raw or 'linear').strip()
    if raw.lower() in DECKS:
        return DECKS[raw.lower()]
    values = []
    for part in raw.split(','):
        part = part.strip()
        if not part:
            continue
        number = float(part)
        values.append(int(number) if number.is_integer() else number)
    if not values:
        raise ValueError(f"VOTE_DECK has no values: {raw!r}")
    return tuple(values)


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',')
        if origin.strip()
    ]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Allowed estimate values
    VOTE_DECK = parse_deck(os.environ.get('VOTE_DECK'))
    # 0 or 1 lets a single participant start a round
    MIN_PLAYERS_TO_START = int(os.environ.get('MIN_PLAYERS_TO_START', '2'))
    # Countdown before results are revealed (seconds). 0 reveals immediately.
    REVEAL_DELAY_SEC = float(os.environ.get('REVEAL_DELAY_SEC', '0'))
    # Send rejected actions back to the sender as 'error' events
    STRICT_MODE = _flag('STRICT_MODE')
    DEFAULT_ROOM_ID = os.environ.get('DEFAULT_ROOM_ID', 'main-room')
    # How long an empty room is kept before eviction (seconds)
    ROOM_EVICT_GRACE_SEC = float(os.environ.get('ROOM_EVICT_GRACE_SEC', '30'))
    MAX_NAME_LENGTH = int(os.environ.get('MAX_NAME_LENGTH', '32'))
