from __future__ import annotations

from .types import DRAW, IN_PROGRESS, SIZE, Board, Mark, Outcome, Position
from ..errors import ValidationError

# Row-major cell indices of every line that wins the game.
LINES: tuple[tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)

CENTER = Position(1, 1)
CORNERS: tuple[Position, ...] = (Position(0, 0), Position(0, 2), Position(2, 0), Position(2, 2))


def apply_move(board: Board, position: Position, player: Mark) -> Board:
    """Return a new board with `player` placed at `position`.

    The input board is never modified.
    """
    if player not in ("X", "O"):
        raise ValidationError(f"Unknown player mark: {player!r}")
    if not position.in_range():
        raise ValidationError(f"Position out of range: ({position.row}, {position.col})")
    if board.at(position) is not None:
        raise ValidationError(f"Cell ({position.row}, {position.col}) is already occupied.")
    cells = list(board.cells)
    cells[position.index] = player
    return Board(cells=tuple(cells))


def winning_line(board: Board) -> tuple[Position, ...] | None:
    cells = board.cells
    for a, b, c in LINES:
        if cells[a] is not None and cells[a] == cells[b] == cells[c]:
            return (Position.from_index(a), Position.from_index(b), Position.from_index(c))
    return None


def winner(board: Board) -> Mark | None:
    line = winning_line(board)
    if line is None:
        return None
    return board.at(line[0])


def is_full(board: Board) -> bool:
    return all(c is not None for c in board.cells)


def evaluate(board: Board) -> Outcome:
    w = winner(board)
    if w is not None:
        return Outcome(status="win", winner=w)
    if is_full(board):
        return DRAW
    return IN_PROGRESS


def legal_moves(board: Board) -> list[Position]:
    """Empty cells in row-major order; an empty list means the board is full."""
    return [Position.from_index(i) for i, c in enumerate(board.cells) if c is None]


def fingerprint(board: Board) -> str:
    return "".join(c if c is not None else "_" for c in board.cells)


def would_win(board: Board, position: Position, player: Mark) -> bool:
    return winner(apply_move(board, position, player)) == player


def render(board: Board) -> str:
    lines = []
    for r in range(SIZE):
        lines.append(" ".join(c or "." for c in board.cells[r * SIZE : (r + 1) * SIZE]))
    return "\n".join(lines)
