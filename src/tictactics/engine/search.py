"""Exhaustive game-tree search.

Scores are from the point of view of `player` (the maximizing side):
`10 - depth` for its win, `depth - 10` for the opponent's win and `0` for a
draw, so faster wins and slower losses score higher.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

from .board import apply_move, is_full, legal_moves, winner
from .types import Board, Mark, Position, other
from ..errors import ValidationError

WIN_SCORE = 10

ScoreFn = Callable[[Board, Mark], int]


def _terminal_score(board: Board, depth: int, player: Mark) -> int | None:
    w = winner(board)
    if w == player:
        return WIN_SCORE - depth
    if w is not None:
        return depth - WIN_SCORE
    if is_full(board):
        return 0
    return None


@lru_cache(maxsize=None)
def minimax(board: Board, depth: int, maximizing: bool, player: Mark) -> int:
    # Pure in its arguments, so memoizing only saves work; the returned
    # score is identical to a cold search.
    terminal = _terminal_score(board, depth, player)
    if terminal is not None:
        return terminal

    mover = player if maximizing else other(player)
    scores = [
        minimax(apply_move(board, pos, mover), depth + 1, not maximizing, player)
        for pos in legal_moves(board)
    ]
    return max(scores) if maximizing else min(scores)


def minimax_alpha_beta(
    board: Board,
    depth: int,
    alpha: float,
    beta: float,
    maximizing: bool,
    player: Mark,
) -> int:
    terminal = _terminal_score(board, depth, player)
    if terminal is not None:
        return terminal

    if maximizing:
        best = -WIN_SCORE - 1
        for pos in legal_moves(board):
            score = minimax_alpha_beta(apply_move(board, pos, player), depth + 1, alpha, beta, False, player)
            best = max(best, score)
            alpha = max(alpha, score)
            if beta <= alpha:
                break
        return best

    best = WIN_SCORE + 1
    opponent = other(player)
    for pos in legal_moves(board):
        score = minimax_alpha_beta(apply_move(board, pos, opponent), depth + 1, alpha, beta, True, player)
        best = min(best, score)
        beta = min(beta, score)
        if beta <= alpha:
            break
    return best


def score_minimax(board: Board, player: Mark) -> int:
    """Score of `board` right after `player` moved, opponent to move next."""
    return minimax(board, 0, False, player)


def score_alpha_beta(board: Board, player: Mark) -> int:
    return minimax_alpha_beta(board, 0, float("-inf"), float("inf"), False, player)


def best_scored_move(
    board: Board,
    player: Mark,
    score_fn: ScoreFn,
    bonus: Callable[[Position], int] | None = None,
) -> tuple[Position, int]:
    """Play every legal move and keep the highest-scoring one.

    Ties go to the first move in row-major order.
    """
    best: tuple[Position, int] | None = None
    for pos in legal_moves(board):
        score = score_fn(apply_move(board, pos, player), player)
        if bonus is not None:
            score += bonus(pos)
        if best is None or score > best[1]:
            best = (pos, score)
    if best is None:
        raise ValidationError("No legal moves to search.")
    return best
