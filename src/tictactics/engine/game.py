from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .ai import DecisionEngine
from .board import apply_move, evaluate, winning_line
from .types import IN_PROGRESS, Board, Mark, Move, Outcome, Position, other
from ..errors import StateError, ValidationError

Event = dict[str, object]


@dataclass(frozen=True)
class MoveRecord:
    player: Mark
    position: Position


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None


@dataclass
class GameState:
    board: Board
    current_player: Mark
    first_player: Mark
    outcome: Outcome = IN_PROGRESS
    move_log: list[MoveRecord] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.outcome.is_terminal


@dataclass
class Scoreboard:
    """Session tally across games; lives as long as the caller keeps it."""

    x_wins: int = 0
    o_wins: int = 0
    draws: int = 0

    def record(self, outcome: Outcome) -> None:
        if outcome.status == "draw":
            self.draws += 1
        elif outcome.winner == "X":
            self.x_wins += 1
        elif outcome.winner == "O":
            self.o_wins += 1
        else:
            raise StateError("Cannot score a game that is still in progress.")

    @property
    def games(self) -> int:
        return self.x_wins + self.o_wins + self.draws


def new_game(first_player: Mark = "X") -> GameState:
    if first_player not in ("X", "O"):
        raise ValidationError(f"Unknown player mark: {first_player!r}")
    state = GameState(board=Board.empty(), current_player=first_player, first_player=first_player)
    state.event_log.append({"type": "GAME_STARTED", "first_player": first_player})
    return state


def _play(state: GameState, position: Position, detail: Mapping[str, object] | None = None) -> list[Event]:
    if state.finished:
        raise StateError("Game already ended.")
    player = state.current_player
    state.board = apply_move(state.board, position, player)
    state.move_log.append(MoveRecord(player=player, position=position))
    start = len(state.event_log)
    event: Event = {"type": "MOVE_PLAYED", "player": player, "row": position.row, "col": position.col}
    if detail:
        event.update(detail)
    state.event_log.append(event)

    state.outcome = evaluate(state.board)
    if state.outcome.status == "win":
        line = winning_line(state.board) or ()
        state.event_log.append(
            {"type": "GAME_WON", "winner": state.outcome.winner, "line": [(p.row, p.col) for p in line]}
        )
    elif state.outcome.status == "draw":
        state.event_log.append({"type": "GAME_DRAWN"})
    else:
        state.current_player = other(player)
    return state.event_log[start:]


def step(state: GameState, position: Position) -> StepResult:
    """Play `position` for the player whose turn it is.

    Illegal input is reported in the result instead of raised so an
    interactive caller can simply ask again.
    """
    try:
        events = _play(state, position)
    except (ValidationError, StateError) as e:
        return StepResult(ok=False, events=[], error=str(e))
    return StepResult(ok=True, events=events)


def ai_take_turn(state: GameState, engine: DecisionEngine) -> Move:
    if state.finished:
        raise StateError("Game already ended.")
    move = engine.get_best_move(state.board, state.current_player)
    _play(state, move.position, {"strategy": move.strategy, "confidence": move.confidence})
    engine.record_move(move.position)
    return move


def play_out(state: GameState, engines: Mapping[Mark, DecisionEngine]) -> Outcome:
    """Let the engines finish the game, each moving for its mapped mark."""
    while not state.finished:
        engine = engines.get(state.current_player)
        if engine is None:
            raise StateError(f"No engine seated for {state.current_player}.")
        ai_take_turn(state, engine)
    return state.outcome


def replay(moves: Iterable[Position], first_player: Mark = "X") -> GameState:
    state = new_game(first_player)
    for pos in moves:
        _play(state, pos)
        if state.finished:
            break
    return state
