from typing import Iterable, List, Optional

from history_time.models import Placement, Player

POINTS_PER_CORRECT_PLACEMENT = 10


def neighbours(timeline: Iterable[Placement], position: int):
    """Return the placements immediately below and above ``position``."""
    lower: Optional[Placement] = None
    upper: Optional[Placement] = None
    for placement in timeline:
        if placement.position < position and (lower is None or placement.position > lower.position):
            lower = placement
        elif placement.position > position and (upper is None or placement.position < upper.position):
            upper = placement
    return lower, upper


def is_chronological(
    timeline: Iterable[Placement],
    position: int,
    year: int,
    accept_equal_years: bool = True,
) -> bool:
    """Check that ``year`` at ``position`` keeps the timeline in ascending order.

    A missing neighbour is an open boundary, so the first card placed is
    always correct. Equal years count as in order unless
    ``accept_equal_years`` is off.
    """
    lower, upper = neighbours(timeline, position)
    if accept_equal_years:
        return (lower is None or lower.year <= year) and (upper is None or year <= upper.year)
    return (lower is None or lower.year < year) and (upper is None or year < upper.year)


def award(player: Player, is_correct: bool) -> None:
    if is_correct:
        player.score += POINTS_PER_CORRECT_PLACEMENT
        player.correct_placements += 1
    else:
        player.incorrect_placements += 1


def pick_winner(players: List[Player]) -> Optional[int]:
    """Seat of the highest scorer; ties go to more correct placements, then the lower seat."""
    if not players:
        return None
    best = max(players, key=lambda p: (p.score, p.correct_placements, -p.seat))
    return best.seat
