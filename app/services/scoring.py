"""
Guess scoring
"""

from typing import Sequence

EDGE_MATCH_POINTS = 2
MIDDLE_MATCH_POINTS = 1
PERFECT_BONUS = 3
NO_MATCH_PENALTY = -1


def score_guess(vip_order: Sequence[str], guessed_order: Sequence[str]) -> int:
    """
    Score a guessed ranking against the VIP's true ranking.

    Favorite and least favorite positions are worth 2 each, the middle three
    1 each. Five matches earn a 3 point bonus; zero matches cost 1 point.
    The result is not clamped.
    """
    last = len(vip_order) - 1
    score = 0
    matches = 0
    for index, item_id in enumerate(vip_order):
        if index < len(guessed_order) and guessed_order[index] == item_id:
            matches += 1
            score += EDGE_MATCH_POINTS if index in (0, last) else MIDDLE_MATCH_POINTS

    if vip_order and matches == len(vip_order):
        score += PERFECT_BONUS
    elif matches == 0:
        score += NO_MATCH_PENALTY

    return score


def is_valid_guess(vip_order: Sequence[str], guessed_order: Sequence[str]) -> bool:
    """A guess must be a permutation of the VIP's item ids"""
    return len(guessed_order) == len(vip_order) and sorted(guessed_order) == sorted(vip_order)
