from __future__ import annotations

from .types import MatchResult

DEFAULT_K = 32


def expected_score(rating: int, opponent_rating: int) -> float:
    return 1.0 / (1.0 + 10 ** ((opponent_rating - rating) / 400))


def actual_scores(result: MatchResult) -> tuple[float, float]:
    if result == "player1":
        return 1.0, 0.0
    if result == "player2":
        return 0.0, 1.0
    if result == "draw":
        return 0.5, 0.5
    raise ValueError(f"No score for result {result!r}")


def update_ratings(rating1: int, rating2: int, result: MatchResult, k: int = DEFAULT_K) -> tuple[int, int]:
    """Logistic ELO update for one resolved match.

    Each side moves by K * (actual - expected) and is rounded to an integer,
    so the two changes cancel out up to one rating point.
    """
    a1, a2 = actual_scores(result)
    e1 = expected_score(rating1, rating2)
    e2 = expected_score(rating2, rating1)
    return round(rating1 + k * (a1 - e1)), round(rating2 + k * (a2 - e2))
