from dataclasses import dataclass
from enum import Enum
from typing import Union

Number = Union[int, float]


class Phase(str, Enum):
    WAITING = 'waiting'
    VOTING = 'voting'
    RESULTS = 'results'


@dataclass
class Participant:
    id: str
    name: str
    connected: bool = True

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'connected': self.connected,
        }


@dataclass(frozen=True)
class Vote:
    participant_id: str
    # Snapshot of the participant's name at the time of voting
    participant_name: str
    value: Number

    def to_dict(self):
        return {
            'playerId': self.participant_id,
            'playerName': self.participant_name,
            'vote': self.value,
        }
