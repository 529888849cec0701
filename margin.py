"""
Attendance margin calculation.

For a course with `attended` out of `total` hours the margin says either how
many more hours can be missed while staying above 76%, or how many hours in
a row must be attended to get back to 75%. Between the two thresholds the
attendance is stable and nothing is searched.
"""

import enum
from dataclasses import dataclass

UPPER_THRESHOLD = 76
LOWER_THRESHOLD = 75


class DivisionByZero(ZeroDivisionError):
    """Raised when a margin is requested for a course with no hours"""


class Direction(enum.Enum):
    CAN_MISS = "can_miss"
    MUST_ATTEND = "must_attend"
    STABLE = "stable"


@dataclass(frozen=True)
class Margin:
    hours: int
    direction: Direction
    message: str
    recomputed_percentage: float


def percentage(attended, total):
    # multiply first so whole-number boundaries (75.0, 76.0) stay exact
    return attended * 100 / total


def margin(attended: int, total: int) -> Margin:
    """Work out how many hours can be missed, or must be attended."""
    if total <= 0:
        raise DivisionByZero(f"total hours must be positive, got {total}")

    initial = percentage(attended, total)

    if initial > UPPER_THRESHOLD:
        n = 0
        while percentage(attended, total + n) > UPPER_THRESHOLD:
            n += 1
        hours = n - 1
        return Margin(
            hours=hours,
            direction=Direction.CAN_MISS,
            message=f"You can miss {hours} hours to stay above {UPPER_THRESHOLD}%.",
            recomputed_percentage=percentage(attended, total + hours),
        )

    if initial >= LOWER_THRESHOLD:
        # exactly 76 lands here as well, there is no hour left to miss
        return Margin(
            hours=0,
            direction=Direction.STABLE,
            message=f"Your attendance is {initial:.2f}%, you can neither miss nor need any hours.",
            recomputed_percentage=initial,
        )

    n = 0
    while percentage(attended + n, total + n) < LOWER_THRESHOLD:
        n += 1
    return Margin(
        hours=n,
        direction=Direction.MUST_ATTEND,
        message=f"You need to attend {n} hours to reach {LOWER_THRESHOLD}%.",
        recomputed_percentage=percentage(attended + n, total + n),
    )
