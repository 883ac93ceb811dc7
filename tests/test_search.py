from __future__ import annotations

import random

from tictactics.engine.board import apply_move, evaluate, legal_moves
from tictactics.engine.search import best_scored_move, minimax, minimax_alpha_beta, score_minimax
from tictactics.engine.types import Board, Mark, Position, other

INF = float("inf")


def _reachable(plies: int) -> list[tuple[Board, Mark]]:
    """Every non-terminal board after exactly `plies` moves (X first), with the side to move."""
    frontier: list[tuple[Board, Mark]] = [(Board.empty(), "X")]
    for _ in range(plies):
        nxt: list[tuple[Board, Mark]] = []
        for board, mover in frontier:
            for pos in legal_moves(board):
                child = apply_move(board, pos, mover)
                if not evaluate(child).is_terminal:
                    nxt.append((child, other(mover)))
        frontier = nxt
    return frontier


def test_terminal_scores_depend_on_depth() -> None:
    won = Board.from_rows([["X", "X", "X"], ["O", "O", "_"], ["_", "_", "_"]])
    assert minimax(won, 0, False, "X") == 10
    assert minimax(won, 3, True, "X") == 7
    assert minimax(won, 3, True, "O") == -7
    drawn = Board.from_rows([["X", "O", "X"], ["X", "O", "O"], ["O", "X", "X"]])
    assert minimax(drawn, 4, True, "X") == 0


def test_alpha_beta_matches_minimax_early_positions() -> None:
    for board, mover in _reachable(2):
        for maximizing in (True, False):
            player = mover if maximizing else other(mover)
            assert minimax(board, 0, maximizing, player) == minimax_alpha_beta(
                board, 0, -INF, INF, maximizing, player
            )


def test_alpha_beta_matches_minimax_sampled_midgame() -> None:
    rng = random.Random(1973)
    boards = _reachable(4)
    for board, mover in rng.sample(boards, 150):
        for depth in (0, 2):
            assert minimax(board, depth, True, mover) == minimax_alpha_beta(board, depth, -INF, INF, True, mover)
            assert minimax(board, depth, False, other(mover)) == minimax_alpha_beta(
                board, depth, -INF, INF, False, other(mover)
            )


def test_empty_board_is_a_draw_and_ties_go_to_first_move() -> None:
    pos, score = best_scored_move(Board.empty(), "X", score_minimax)
    assert score == 0
    assert pos == Position(0, 0)


def test_prefers_fastest_win() -> None:
    # X can win now at (0, 2); the other winning continuations take longer.
    board = Board.from_rows([["X", "X", "_"], ["O", "O", "_"], ["X", "_", "O"]])
    pos, score = best_scored_move(board, "X", score_minimax)
    assert pos == Position(0, 2)
    assert score == 10
