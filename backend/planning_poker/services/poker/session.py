"""Room session store: the planning poker state machine for a single room.

Phases cycle strictly waiting -> voting -> results -> waiting. Every change
goes through :meth:`RoomSession.apply`, which takes one command and returns
the events the gateway must broadcast to the room. Commands that are not
valid for the current state raise a :class:`PokerError` before anything is
mutated.
"""

import numbers
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

from planning_poker.config import DECKS
from planning_poker.models import Participant, Phase, Vote
from .exceptions import (
    InvalidName,
    InvalidVote,
    NotEnoughPlayers,
    PhaseMismatch,
    UnknownParticipant,
)
from .scoring import build_result


# Outbound event names, shared with the web client
STATE_UPDATE = 'game-state-update'
VOTING_STARTED = 'voting-started'
VOTE_COUNT_UPDATE = 'vote-count-update'
COUNTDOWN_START = 'countdown-start'
VOTING_COMPLETE = 'voting-complete'


def clean_name(name, max_length: int) -> str:
    """Trimmed display name, or InvalidName if it cannot be used."""
    if not isinstance(name, str):
        raise InvalidName(f"name must be a string, got {type(name).__name__}")
    name = name.strip()
    if not name:
        raise InvalidName('name is empty')
    if len(name) > max_length:
        raise InvalidName(f"name longer than {max_length} characters")
    return name


class Event(NamedTuple):
    name: str
    payload: Any = None


@dataclass(frozen=True)
class Join:
    sid: str
    name: Any


@dataclass(frozen=True)
class StartVoting:
    sid: str


@dataclass(frozen=True)
class SubmitVote:
    sid: str
    value: Any


@dataclass(frozen=True)
class NextRound:
    sid: str


@dataclass(frozen=True)
class Leave:
    sid: str


@dataclass(frozen=True)
class Reveal:
    """Fired by the reveal scheduler once the countdown has elapsed."""
    round_number: int


@dataclass(frozen=True)
class PendingReveal:
    round_number: int
    votes: Tuple[Vote, ...]


class RoomSession:
    def __init__(
        self,
        room_id: str,
        deck: Sequence = DECKS['linear'],
        min_players_to_start: int = 2,
        reveal_delay: float = 0.0,
        max_name_length: int = 32,
    ):
        self.room_id = room_id
        self.deck = tuple(deck)
        self.min_players_to_start = min_players_to_start
        self.reveal_delay = reveal_delay
        self.max_name_length = max_name_length
        # Insertion order is join order
        self.participants: Dict[str, Participant] = {}
        self.votes: Dict[str, Vote] = {}
        self.phase = Phase.WAITING
        self.round_number = 0
        self.pending_reveal: Optional[PendingReveal] = None

    def __len__(self):
        return len(self.participants)

    @property
    def is_empty(self) -> bool:
        return not self.participants

    def apply(self, command) -> List[Event]:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"unsupported command: {command!r}")
        return handler(self, command)

    # ---- snapshots ----

    def snapshot(self) -> dict:
        votes = None
        if self.phase == Phase.RESULTS:
            votes = [[pid, vote.to_dict()] for pid, vote in self.votes.items()]
        return {
            'roomId': self.room_id,
            'players': [p.to_dict() for p in self.participants.values()],
            'gamePhase': self.phase.value,
            'votes': votes,
        }

    def vote_progress(self) -> dict:
        return {
            'votedCount': len(self.votes),
            'totalPlayers': len(self.participants),
        }

    def _state_event(self) -> Event:
        return Event(STATE_UPDATE, self.snapshot())

    # ---- command handlers ----

    def _join(self, cmd: Join) -> List[Event]:
        name = clean_name(cmd.name, self.max_name_length)
        self.participants[cmd.sid] = Participant(id=cmd.sid, name=name)
        return [self._state_event()]

    def _start_voting(self, cmd: StartVoting) -> List[Event]:
        if len(self.participants) < self.min_players_to_start:
            raise NotEnoughPlayers(
                f"need {self.min_players_to_start} participants to start, have {len(self.participants)}"
            )
        self.phase = Phase.VOTING
        self.votes.clear()
        self.round_number += 1
        self.pending_reveal = None
        return [Event(VOTING_STARTED), self._state_event()]

    def _submit_vote(self, cmd: SubmitVote) -> List[Event]:
        value = self._validate_value(cmd.value)
        if self.phase != Phase.VOTING:
            raise PhaseMismatch(f"votes are not accepted during {self.phase.value}")
        participant = self.participants.get(cmd.sid)
        if participant is None:
            raise UnknownParticipant(f"{cmd.sid} has not joined room {self.room_id}")

        self.votes[cmd.sid] = Vote(participant.id, participant.name, value)
        events = [Event(VOTE_COUNT_UPDATE, self.vote_progress())]

        # Completion is evaluated once, at the moment of submission
        if len(self.votes) != len(self.participants):
            return events
        if self.pending_reveal is not None and self.pending_reveal.round_number == self.round_number:
            return events
        if self.reveal_delay > 0:
            self.pending_reveal = PendingReveal(self.round_number, tuple(self.votes.values()))
            events.append(Event(COUNTDOWN_START))
            return events
        events.extend(self._reveal_votes(tuple(self.votes.values())))
        return events

    def _next_round(self, cmd: NextRound) -> List[Event]:
        self.phase = Phase.WAITING
        self.votes.clear()
        self.pending_reveal = None
        return [self._state_event()]

    def _leave(self, cmd: Leave) -> List[Event]:
        if cmd.sid not in self.participants:
            raise UnknownParticipant(f"{cmd.sid} is not in room {self.room_id}")
        del self.participants[cmd.sid]
        self.votes.pop(cmd.sid, None)
        return [self._state_event()]

    def _reveal(self, cmd: Reveal) -> List[Event]:
        pending = self.pending_reveal
        if (
            pending is None
            or pending.round_number != cmd.round_number
            or self.round_number != cmd.round_number
            or self.phase != Phase.VOTING
        ):
            return []
        self.pending_reveal = None
        return self._reveal_votes(pending.votes)

    # ---- helpers ----

    def _reveal_votes(self, votes: Tuple[Vote, ...]) -> List[Event]:
        self.phase = Phase.RESULTS
        # Keep the vote mapping a subset of current participants
        self.votes = {v.participant_id: v for v in votes if v.participant_id in self.participants}
        return [Event(VOTING_COMPLETE, build_result(votes)), self._state_event()]

    def _validate_value(self, value):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise InvalidVote(f"vote must be a number, got {value!r}")
        if value not in self.deck:
            raise InvalidVote(f"{value!r} is not in the deck {list(self.deck)}")
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return value

    _handlers = {
        Join: _join,
        StartVoting: _start_voting,
        SubmitVote: _submit_vote,
        NextRound: _next_round,
        Leave: _leave,
        Reveal: _reveal,
    }
