"""Rejections raised by the room session store.

Every store operation validates before it mutates, so raising one of these
guarantees the session is unchanged. The gateway decides whether the sender
hears about it (strict mode) or it is only logged.
"""


class PokerError(Exception):
    code = 'poker_error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class InvalidName(PokerError):
    code = 'invalid_name'


class InvalidRoom(PokerError):
    code = 'invalid_room'


class InvalidVote(PokerError):
    code = 'invalid_vote'


class PhaseMismatch(PokerError):
    code = 'phase_mismatch'


class UnknownParticipant(PokerError):
    code = 'unknown_participant'


class NotEnoughPlayers(PokerError):
    code = 'not_enough_players'
