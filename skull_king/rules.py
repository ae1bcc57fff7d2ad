from __future__ import annotations

from typing import AbstractSet, Iterable, List, Sequence

from .bonuses import BonusKind
from .state import GameState, RankedPlayer


def bid_made(bid: int, tricks_won: int) -> bool:
    """True when the player took exactly as many tricks as they bid."""
    return bid == tricks_won


def bonus_points(bonuses: Iterable[BonusKind]) -> int:
    """Sum of catalog values for the selected bonuses."""
    return sum(kind.points for kind in bonuses)


def score_round(
    bid: int,
    tricks_won: int,
    round_number: int,
    bonuses: Iterable[BonusKind] = (),
) -> int:
    """
    Score one player's round according to Skull King scoring:

    - Bid zero: +10 * round_number if no tricks were taken,
      otherwise -10 * round_number.
    - Bid one or more: +20 * bid if tricks_won == bid,
      otherwise -10 * abs(bid - tricks_won).
    - Bonus points count only when the bid was made exactly.

    The function does not check that tricks_won fits in the round's hand;
    callers that care about that enforce it before scoring.
    """
    if bid == 0:
        if tricks_won == 0:
            score = 10 * round_number
        else:
            score = -10 * round_number
    elif bid_made(bid, tricks_won):
        score = 20 * bid
    else:
        score = -10 * abs(bid - tricks_won)

    if bid_made(bid, tricks_won):
        score += bonus_points(bonuses)
    return score


def score_history(
    bids: Sequence[int],
    tricks_won: Sequence[int],
    bonuses: Sequence[AbstractSet[BonusKind]],
) -> List[int]:
    """
    Score every recorded round from scratch.

    Round numbers are 1-based, so index i of each sequence is round i + 1.
    """
    if not len(bids) == len(tricks_won) == len(bonuses):
        raise ValueError("Per-round sequences must have the same length")
    return [
        score_round(bid, won, idx + 1, selected)
        for idx, (bid, won, selected) in enumerate(zip(bids, tricks_won, bonuses))
    ]


def rank_players(game_state: GameState) -> List[RankedPlayer]:
    """
    Players ordered by total score, best first.

    The sort is stable, so tied players keep roster order; ranks are still
    distinct (1, 2, 3, ...).
    """
    ordered = sorted(
        game_state.players, key=lambda p: p.total_score, reverse=True
    )
    return [
        RankedPlayer(player=p, total_score=p.total_score, rank=idx + 1)
        for idx, p in enumerate(ordered)
    ]
