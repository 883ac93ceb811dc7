from __future__ import annotations

import random

import pytest

from tictactics.engine.ai import DecisionEngine, choose_move, easy_move, medium_move
from tictactics.engine.board import apply_move, fingerprint, legal_moves
from tictactics.engine.memory import PatternMemory
from tictactics.engine.types import DIFFICULTIES, Board, Difficulty, EngineConfig, Position
from tictactics.errors import ValidationError

WIN_FOR_X = Board.from_rows([["X", "X", "_"], ["O", "O", "_"], ["_", "_", "_"]])
# X threatens (0, 2); O has no win of its own.
THREAT_AGAINST_O = Board.from_rows([["X", "X", "_"], ["_", "O", "_"], ["_", "_", "_"]])
FULL = Board.from_rows([["X", "O", "X"], ["X", "O", "O"], ["O", "X", "X"]])


def _engine(difficulty: Difficulty, seed: int = 0) -> DecisionEngine:
    return DecisionEngine.create("X", difficulty, seed=seed)


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
def test_every_tier_rejects_full_board(difficulty: Difficulty) -> None:
    with pytest.raises(ValidationError):
        _engine(difficulty).get_best_move(FULL, "X")


@pytest.mark.parametrize("difficulty", DIFFICULTIES)
def test_every_tier_returns_a_legal_move(difficulty: Difficulty) -> None:
    board = Board.from_rows([["X", "_", "_"], ["_", "O", "_"], ["_", "_", "X"]])
    move = _engine(difficulty).get_best_move(board, "O")
    assert move.position in legal_moves(board)
    assert move.player == "O"
    assert move.strategy


@pytest.mark.parametrize("difficulty", ["hard", "expert", "impossible"])
def test_strong_tiers_take_immediate_win(difficulty: Difficulty) -> None:
    move = _engine(difficulty).get_best_move(WIN_FOR_X, "X")
    assert move.position == Position(0, 2)


@pytest.mark.parametrize("difficulty", ["medium", "hard", "expert", "impossible"])
def test_medium_and_up_block_immediate_threat(difficulty: Difficulty) -> None:
    move = _engine(difficulty).get_best_move(THREAT_AGAINST_O, "O")
    assert move.position == Position(0, 2)


def test_medium_rule_order_and_confidence() -> None:
    rng = random.Random(3)
    win = medium_move(WIN_FOR_X, "X", rng)
    assert (win.strategy, win.confidence) == ("winning_move", 1.0)

    block = medium_move(THREAT_AGAINST_O, "O", rng)
    assert (block.strategy, block.confidence) == ("blocking_move", 0.9)

    opening = apply_move(Board.empty(), Position(0, 0), "X")
    center = medium_move(opening, "O", rng)
    assert center.position == Position(1, 1)
    assert center.confidence == 0.6

    centered = apply_move(Board.empty(), Position(1, 1), "X")
    corner = medium_move(centered, "O", rng)
    assert corner.position.kind == "corner"
    assert corner.confidence == 0.5


def test_easy_prefers_center_and_corners() -> None:
    rng = random.Random(11)
    for _ in range(30):
        move = easy_move(Board.empty(), "X", rng)
        assert move.position.kind in ("center", "corner")
        assert move.confidence == 0.3

    only_edges = Board.from_rows([["X", "_", "O"], ["_", "X", "_"], ["O", "_", "O"]])
    move = easy_move(only_edges, "X", rng)
    assert move.position.kind == "edge"


def test_easy_is_reproducible_for_a_seed() -> None:
    picks_a = [easy_move(Board.empty(), "X", random.Random(42)).position for _ in range(5)]
    picks_b = [easy_move(Board.empty(), "X", random.Random(42)).position for _ in range(5)]
    assert picks_a == picks_b


def test_hard_and_expert_agree_on_scores() -> None:
    board = Board.from_rows([["X", "_", "_"], ["_", "O", "_"], ["_", "_", "_"]])
    hard = _engine("hard").get_best_move(board, "X")
    expert = _engine("expert").get_best_move(board, "X")
    assert hard.position == expert.position
    assert hard.score == expert.score
    assert (hard.confidence, expert.confidence) == (0.8, 0.95)


def test_expert_reinforces_pre_move_board() -> None:
    engine = _engine("expert")
    board = apply_move(Board.empty(), Position(1, 1), "O")
    engine.get_best_move(board, "X")
    engine.get_best_move(board, "X")
    assert engine.memory.count(board) == 2
    assert fingerprint(board) in engine.memory.entries


def test_hard_does_not_touch_pattern_memory() -> None:
    engine = _engine("hard")
    engine.get_best_move(Board.empty(), "X")
    assert len(engine.memory) == 0


def test_impossible_replays_rewarded_move_past_threshold() -> None:
    engine = _engine("impossible")
    board = Board.from_rows([["X", "_", "_"], ["_", "O", "_"], ["_", "_", "_"]])
    searched = [engine.get_best_move(board, "X") for _ in range(6)]
    assert {m.strategy for m in searched} == {"positional_alpha_beta"}
    assert engine.memory.count(board) == 6

    replayed = engine.get_best_move(board, "X")
    assert replayed.strategy == "pattern_replay"
    assert replayed.position == searched[-1].position
    # replay itself does not reinforce
    assert engine.memory.count(board) == 6


def test_replay_requires_same_mover() -> None:
    memory = PatternMemory()
    for _ in range(6):
        memory.reinforce(Board.empty(), Position(2, 2), "X")
    cfg = EngineConfig()
    as_x = choose_move(Board.empty(), "X", "impossible", rng=random.Random(0), memory=memory, config=cfg)
    assert (as_x.position, as_x.strategy) == (Position(2, 2), "pattern_replay")
    as_o = choose_move(Board.empty(), "O", "impossible", rng=random.Random(0), memory=memory, config=cfg)
    assert as_o.strategy == "positional_alpha_beta"


def test_legacy_replay_uses_first_legal_move() -> None:
    memory = PatternMemory()
    for _ in range(6):
        memory.reinforce(Board.empty(), Position(2, 2), "X")
    cfg = EngineConfig(replay_rewarded_move=False)
    move = choose_move(Board.empty(), "X", "impossible", rng=random.Random(0), memory=memory, config=cfg)
    assert (move.position, move.strategy) == (Position(0, 0), "pattern_replay")


def test_impossible_prefers_center_on_empty_board() -> None:
    move = _engine("impossible").get_best_move(Board.empty(), "X")
    assert move.position == Position(1, 1)
    assert move.score == 3
    assert move.confidence == 1.0


def test_reset_keeps_pattern_memory() -> None:
    engine = _engine("expert")
    move = engine.get_best_move(Board.empty())
    engine.record_move(move.position)
    assert engine.stats()["moves_played"] == 1
    engine.reset()
    assert engine.stats() == {"difficulty": "expert", "moves_played": 0, "patterns_learned": 1, "player": "X"}


def test_set_difficulty_validates() -> None:
    engine = _engine("easy")
    engine.set_difficulty("impossible")
    assert engine.difficulty == "impossible"
    with pytest.raises(ValidationError):
        engine.set_difficulty("godlike")  # type: ignore[arg-type]
