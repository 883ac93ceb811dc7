"""Deterministic, headless tic-tac-toe rules and decision engine.

IMPORTANT: This package must never import presentation code or services.
"""

from .ai import DecisionEngine, choose_move
from .board import apply_move, evaluate, fingerprint, legal_moves, winning_line
from .game import GameState, Scoreboard, StepResult, ai_take_turn, new_game, play_out, step
from .memory import PatternMemory
from .search import minimax, minimax_alpha_beta
from .types import Board, Difficulty, EngineConfig, Mark, Move, Outcome, Position

__all__ = [
    "Board",
    "DecisionEngine",
    "Difficulty",
    "EngineConfig",
    "GameState",
    "Mark",
    "Move",
    "Outcome",
    "PatternMemory",
    "Position",
    "Scoreboard",
    "StepResult",
    "ai_take_turn",
    "apply_move",
    "choose_move",
    "evaluate",
    "fingerprint",
    "legal_moves",
    "minimax",
    "minimax_alpha_beta",
    "new_game",
    "play_out",
    "step",
    "winning_line",
]
