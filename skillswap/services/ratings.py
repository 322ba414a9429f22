"""Aggregate rating arithmetic."""

from skillswap.db.models import UserDB


def running_mean(average: float, count: int, incoming: int) -> tuple[float, int]:
    """Fold one more score into a running mean.

    The weighted sum uses the count *before* the new score is added.

    >>> running_mean(4.0, 2, 5)
    (4.333333333333333, 3)
    """
    total = average * count + incoming
    new_count = count + 1
    return total / new_count, new_count


def apply_rating(user: UserDB, score: int) -> None:
    """Update a user's aggregate rating in place with one received score."""
    user.rating_average, user.rating_count = running_mean(
        user.rating_average or 0.0, user.rating_count or 0, score
    )
