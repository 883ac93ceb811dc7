from __future__ import annotations

from .board import fingerprint, render
from .game import GameState, MoveRecord
from .types import Board, Move, Outcome, Position


def position_to_dict(p: Position) -> dict[str, object]:
    return {"row": p.row, "col": p.col}


def board_to_dict(b: Board) -> dict[str, object]:
    return {"rows": [[c for c in row] for row in b.rows()], "fingerprint": fingerprint(b), "text": render(b)}


def outcome_to_dict(o: Outcome) -> dict[str, object]:
    return {"status": o.status, "winner": o.winner}


def move_to_dict(m: Move) -> dict[str, object]:
    return {
        "position": position_to_dict(m.position),
        "player": m.player,
        "score": m.score,
        "confidence": m.confidence,
        "strategy": m.strategy,
    }


def _record_to_dict(r: MoveRecord) -> dict[str, object]:
    return {"player": r.player, **position_to_dict(r.position)}


def snapshot(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of a game."""
    return {
        "first_player": state.first_player,
        "current_player": state.current_player,
        "board": board_to_dict(state.board),
        "outcome": outcome_to_dict(state.outcome),
        "moves": [_record_to_dict(r) for r in state.move_log],
    }
