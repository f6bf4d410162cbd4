from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable


_TENTHS = Decimal('0.1')


def compute_average(values: Iterable[float]) -> float:
    """Average of the vote values rounded half-up to one decimal place.

    Decimal arithmetic keeps 6.25 -> 6.3 where float rounding would not.
    """
    values = list(values)
    if not values:
        raise ValueError('cannot average zero votes')
    total = sum(Decimal(str(v)) for v in values)
    mean = total / Decimal(len(values))
    return float(mean.quantize(_TENTHS, rounding=ROUND_HALF_UP))


def build_result(votes) -> dict:
    """Payload of the 'voting-complete' event for a list of Vote objects."""
    votes = list(votes)
    return {
        'votes': [v.to_dict() for v in votes],
        'average': compute_average(v.value for v in votes),
    }
