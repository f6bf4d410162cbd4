import pytest

from planning_poker.config import DECKS, parse_deck


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_counts_rooms(client, connect):
    assert client.get('/health').get_json() == {'status': 'ok', 'rooms': 0}
    alice = connect()
    alice.emit('join-game', 'Alice')
    assert client.get('/health').get_json()['rooms'] == 1


def test_client_config(client):
    data = client.get('/api/config').get_json()
    assert data['deck'] == [1, 2, 3, 5, 10]
    assert data['minPlayersToStart'] == 2
    assert data['strictMode'] is False
    assert data['defaultRoomId'] == 'main-room'


@pytest.mark.parametrize('config_class', [{'VOTE_DECK': DECKS['fibonacci']}], indirect=True)
def test_client_config_fibonacci_deck(client):
    assert client.get('/api/config').get_json()['deck'] == [1, 2, 3, 5, 8, 13, 21, 34, 55, 89]


def test_room_state_and_listing(client, connect):
    assert client.get('/api/rooms/main-room/state').status_code == 404
    alice = connect()
    alice.emit('join-game', {'name': 'Alice', 'room': 'team-a'})
    res = client.get('/api/rooms/team-a/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['roomId'] == 'team-a'
    assert state['gamePhase'] == 'waiting'
    assert [p['name'] for p in state['players']] == ['Alice']
    assert client.get('/api/rooms').get_json() == [
        {'roomId': 'team-a', 'players': 1, 'gamePhase': 'waiting'}
    ]


def test_show_config_command(flask_app):
    result = flask_app.test_cli_runner().invoke(args=['show-config'])
    assert result.exit_code == 0
    assert 'deck: 1, 2, 3, 5, 10' in result.output
    assert 'strict mode: off' in result.output


@pytest.mark.parametrize('raw, expected', [
    (None, (1, 2, 3, 5, 10)),
    ('linear', (1, 2, 3, 5, 10)),
    ('Fibonacci', (1, 2, 3, 5, 8, 13, 21, 34, 55, 89)),
    ('0.5, 1, 2,', (0.5, 1, 2)),
])
def test_parse_deck(raw, expected):
    assert parse_deck(raw) == expected


def test_parse_deck_rejects_empty_list():
    with pytest.raises(ValueError):
        parse_deck(' , ')
