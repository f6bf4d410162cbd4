import os
import sys
import pytest

# Ensure the backend root (containing the `planning_poker` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from planning_poker import create_app, socketio
from planning_poker.config import DECKS


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CORS_ORIGINS = ['http://localhost:5173']
    SOCKETIO_NAMESPACE = '/'
    VOTE_DECK = DECKS['linear']
    MIN_PLAYERS_TO_START = 2
    REVEAL_DELAY_SEC = 0
    STRICT_MODE = False
    DEFAULT_ROOM_ID = 'main-room'
    # Evict empty rooms immediately for determinism
    ROOM_EVICT_GRACE_SEC = 0
    MAX_NAME_LENGTH = 32


@pytest.fixture()
def config_class(request):
    # Tests override settings with indirect parametrization of this fixture
    overrides = getattr(request, 'param', None)
    if not overrides:
        return TestConfig
    return type('OverrideConfig', (TestConfig,), overrides)


@pytest.fixture()
def flask_app(config_class):
    application = create_app(config_class)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def connect(flask_app):
    """Factory for Socket.IO test clients; every client is disconnected on teardown."""
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        # Drop the 'connected' greeting
        test_client.get_received()
        return test_client

    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
