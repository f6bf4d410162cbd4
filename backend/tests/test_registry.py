from functools import partial

import pytest

from planning_poker.services.poker.exceptions import InvalidRoom
from planning_poker.services.poker.registry import RoomRegistry
from planning_poker.services.poker.session import (
    Join,
    Leave,
    Reveal,
    RoomSession,
    StartVoting,
    SubmitVote,
)


def test_get_or_create_returns_same_session():
    registry = RoomRegistry()
    first = registry.get_or_create('alpha')
    assert registry.get_or_create(' alpha ') is first
    assert registry.room_ids() == ['alpha']
    assert 'alpha' in registry
    assert len(registry) == 1


@pytest.mark.parametrize('room_id', ['', '   ', None, 7, 'r' * 65])
def test_invalid_room_ids_are_rejected(room_id):
    registry = RoomRegistry()
    with pytest.raises(InvalidRoom):
        registry.get_or_create(room_id)
    assert len(registry) == 0


def test_rooms_are_isolated():
    registry = RoomRegistry(partial(RoomSession, min_players_to_start=1))
    alpha = registry.get_or_create('alpha')
    beta = registry.get_or_create('beta')
    alpha.apply(Join('a', 'Alice'))
    alpha.apply(StartVoting('a'))
    beta.apply(Join('b', 'Bob'))
    assert alpha.phase.value == 'voting'
    assert beta.phase.value == 'waiting'
    assert list(beta.participants) == ['b']


def test_evict_only_empty_rooms():
    registry = RoomRegistry()
    session = registry.get_or_create('alpha')
    session.apply(Join('a', 'Alice'))
    assert registry.evict_if_empty('alpha') is False
    session.apply(Leave('a'))
    assert registry.evict_if_empty('alpha') is True
    assert registry.get('alpha') is None
    assert registry.evict_if_empty('alpha') is False


def test_configure_changes_factory_for_new_rooms():
    registry = RoomRegistry()
    registry.configure(partial(RoomSession, deck=(1, 2)))
    assert registry.get_or_create('alpha').deck == (1, 2)


def test_empty_room_with_pending_reveal_is_kept():
    registry = RoomRegistry(partial(RoomSession, reveal_delay=3))
    session = registry.get_or_create('alpha')
    session.apply(Join('a', 'Alice'))
    session.apply(Join('b', 'Bob'))
    session.apply(StartVoting('a'))
    session.apply(SubmitVote('a', 1))
    session.apply(SubmitVote('b', 2))
    session.apply(Leave('a'))
    session.apply(Leave('b'))
    assert registry.evict_if_empty('alpha') is False

    session.apply(Reveal(session.round_number))
    assert registry.evict_if_empty('alpha') is True
