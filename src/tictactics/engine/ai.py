from __future__ import annotations

import random
from dataclasses import dataclass, field

from .board import CENTER, CORNERS, legal_moves, would_win
from .memory import PatternMemory
from .search import best_scored_move, score_alpha_beta, score_minimax
from .types import DIFFICULTIES, Board, Difficulty, EngineConfig, Mark, Move, Position, other
from ..errors import ValidationError


def _require_moves(board: Board) -> list[Position]:
    moves = legal_moves(board)
    if not moves:
        raise ValidationError("No legal moves available.")
    return moves


def _find_winning(board: Board, moves: list[Position], player: Mark) -> Position | None:
    for pos in moves:
        if would_win(board, pos, player):
            return pos
    return None


def easy_move(board: Board, player: Mark, rng: random.Random) -> Move:
    """Random pick, restricted to center/corners when any of them is free."""
    moves = _require_moves(board)
    preferred = [p for p in moves if p.kind in ("center", "corner")]
    pos = rng.choice(preferred or moves)
    return Move(position=pos, player=player, score=0, confidence=0.3, strategy="random_preferred")


def medium_move(board: Board, player: Mark, rng: random.Random) -> Move:
    moves = _require_moves(board)

    win = _find_winning(board, moves, player)
    if win is not None:
        return Move(position=win, player=player, score=100, confidence=1.0, strategy="winning_move")

    block = _find_winning(board, moves, other(player))
    if block is not None:
        return Move(position=block, player=player, score=50, confidence=0.9, strategy="blocking_move")

    if board.at(CENTER) is None:
        return Move(position=CENTER, player=player, score=10, confidence=0.6, strategy="center")

    corners = [c for c in CORNERS if board.at(c) is None]
    if corners:
        return Move(position=rng.choice(corners), player=player, score=5, confidence=0.5, strategy="corner")

    return easy_move(board, player, rng)


def hard_move(board: Board, player: Mark) -> Move:
    pos, score = best_scored_move(board, player, score_minimax)
    return Move(position=pos, player=player, score=score, confidence=0.8, strategy="minimax")


def expert_move(board: Board, player: Mark, memory: PatternMemory) -> Move:
    pos, score = best_scored_move(board, player, score_alpha_beta)
    memory.reinforce(board, pos, player)
    return Move(position=pos, player=player, score=score, confidence=0.95, strategy="alpha_beta")


def impossible_move(board: Board, player: Mark, memory: PatternMemory, config: EngineConfig) -> Move:
    moves = _require_moves(board)

    # Forced moves come first so the positional bonus can never outweigh them.
    forced = _find_winning(board, moves, player)
    strategy = "winning_move"
    if forced is None:
        forced = _find_winning(board, moves, other(player))
        strategy = "blocking_move"
    if forced is not None:
        memory.reinforce(board, forced, player)
        return Move(position=forced, player=player, score=0, confidence=1.0, strategy=strategy)

    recalled = _recall(board, player, memory, config, moves)
    if recalled is not None:
        return recalled

    pos, score = best_scored_move(board, player, score_alpha_beta, bonus=config.positional_bonus)
    memory.reinforce(board, pos, player)
    return Move(position=pos, player=player, score=score, confidence=1.0, strategy="positional_alpha_beta")


def _recall(
    board: Board,
    player: Mark,
    memory: PatternMemory,
    config: EngineConfig,
    moves: list[Position],
) -> Move | None:
    if config.replay_rewarded_move:
        entry = memory.recall(board, player, config.pattern_threshold)
        if entry is None:
            return None
        return Move(
            position=entry.position, player=player, score=entry.count, confidence=0.9, strategy="pattern_replay"
        )
    # Legacy behaviour: any well-known board replays the first legal move.
    count = memory.count(board)
    if count <= config.pattern_threshold:
        return None
    return Move(position=moves[0], player=player, score=count, confidence=0.9, strategy="pattern_replay")


def choose_move(
    board: Board,
    player: Mark,
    difficulty: Difficulty,
    *,
    rng: random.Random,
    memory: PatternMemory,
    config: EngineConfig,
) -> Move:
    if difficulty == "easy":
        return easy_move(board, player, rng)
    if difficulty == "medium":
        return medium_move(board, player, rng)
    if difficulty == "hard":
        _require_moves(board)
        return hard_move(board, player)
    if difficulty == "expert":
        _require_moves(board)
        return expert_move(board, player, memory)
    if difficulty == "impossible":
        return impossible_move(board, player, memory, config)
    raise ValidationError(f"Unknown difficulty: {difficulty!r}")


@dataclass
class DecisionEngine:
    """Move selector for one computer-controlled seat.

    The RNG is injected so that a seed reproduces every random choice.
    Pattern memory survives `reset()`; only the move history is cleared.
    """

    player: Mark = "O"
    difficulty: Difficulty = "hard"
    rng: random.Random = field(default_factory=random.Random)
    config: EngineConfig = field(default_factory=EngineConfig)
    memory: PatternMemory = field(default_factory=PatternMemory)
    move_history: list[Position] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise ValidationError(f"Unknown difficulty: {self.difficulty!r}")

    @staticmethod
    def create(
        player: Mark = "O",
        difficulty: Difficulty | None = None,
        *,
        seed: int | None = None,
        config: EngineConfig | None = None,
    ) -> "DecisionEngine":
        cfg = config or EngineConfig()
        return DecisionEngine(
            player=player,
            difficulty=difficulty or cfg.default_difficulty,
            rng=random.Random(seed),
            config=cfg,
        )

    def get_best_move(
        self, board: Board, player: Mark | None = None, difficulty: Difficulty | None = None
    ) -> Move:
        return choose_move(
            board,
            player or self.player,
            difficulty or self.difficulty,
            rng=self.rng,
            memory=self.memory,
            config=self.config,
        )

    def set_difficulty(self, difficulty: Difficulty) -> None:
        if difficulty not in DIFFICULTIES:
            raise ValidationError(f"Unknown difficulty: {difficulty!r}")
        self.difficulty = difficulty

    def record_move(self, position: Position) -> None:
        self.move_history.append(position)

    def reset(self) -> None:
        self.move_history.clear()

    def stats(self) -> dict[str, object]:
        return {
            "difficulty": self.difficulty,
            "moves_played": len(self.move_history),
            "patterns_learned": len(self.memory),
            "player": self.player,
        }
