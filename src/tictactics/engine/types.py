from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

Mark = Literal["X", "O"]
Cell = Mark | None
Difficulty = Literal["easy", "medium", "hard", "expert", "impossible"]
OutcomeStatus = Literal["in_progress", "win", "draw"]
PositionKind = Literal["center", "corner", "edge"]

DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard", "expert", "impossible")

SIZE = 3


def other(mark: Mark) -> Mark:
    return "O" if mark == "X" else "X"


@dataclass(frozen=True, order=True)
class Position:
    row: int
    col: int

    @property
    def index(self) -> int:
        return self.row * SIZE + self.col

    @property
    def kind(self) -> PositionKind:
        if self.row == 1 and self.col == 1:
            return "center"
        if self.row in (0, 2) and self.col in (0, 2):
            return "corner"
        return "edge"

    def in_range(self) -> bool:
        return 0 <= self.row < SIZE and 0 <= self.col < SIZE

    @staticmethod
    def from_index(index: int) -> "Position":
        return Position(row=index // SIZE, col=index % SIZE)


@dataclass(frozen=True)
class Board:
    """Immutable 3x3 grid stored row-major; `None` marks an empty cell."""

    cells: tuple[Cell, ...] = (None,) * (SIZE * SIZE)

    def __post_init__(self) -> None:
        if len(self.cells) != SIZE * SIZE:
            raise ValueError(f"Board needs exactly {SIZE * SIZE} cells.")

    @staticmethod
    def empty() -> "Board":
        return Board()

    @staticmethod
    def from_rows(rows: Sequence[Sequence[Cell | str]]) -> "Board":
        # "_", "." and "" are accepted as empty for readable literals in tests
        cells: list[Cell] = []
        for row in rows:
            for cell in row:
                if cell in (None, "", "_", "."):
                    cells.append(None)
                elif cell in ("X", "O"):
                    cells.append(cell)  # type: ignore[arg-type]
                else:
                    raise ValueError(f"Unknown cell value: {cell!r}")
        return Board(cells=tuple(cells))

    def at(self, position: Position) -> Cell:
        return self.cells[position.index]

    def rows(self) -> list[list[Cell]]:
        return [list(self.cells[r * SIZE : (r + 1) * SIZE]) for r in range(SIZE)]


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    winner: Mark | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != "in_progress"


IN_PROGRESS = Outcome(status="in_progress")
DRAW = Outcome(status="draw")


@dataclass(frozen=True)
class Move:
    """A selected move. Score, confidence and strategy are diagnostics only."""

    position: Position
    player: Mark
    score: float = 0.0
    confidence: float = 0.0
    strategy: str = ""


@dataclass(frozen=True)
class EngineConfig:
    pattern_threshold: int = 5
    center_bonus: int = 3
    corner_bonus: int = 2
    edge_bonus: int = 1
    default_difficulty: Difficulty = "hard"
    replay_rewarded_move: bool = True

    def positional_bonus(self, position: Position) -> int:
        kind = position.kind
        if kind == "center":
            return self.center_bonus
        if kind == "corner":
            return self.corner_bonus
        return self.edge_bonus
