from __future__ import annotations

import itertools
import json
import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from ..engine.board import apply_move, evaluate
from ..engine.types import Board, Mark, Position
from ..errors import StateError, ValidationError
from . import brackets
from .ratings import update_ratings
from .serialize import tournament_from_dict, tournament_to_dict
from .types import (
    FORMATS,
    EventSink,
    Match,
    MatchMove,
    MatchResult,
    PlayerRecord,
    Tournament,
    TournamentConfig,
    TournamentFormat,
)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(frozen=True)
class PlayerAnalytics:
    player: PlayerRecord
    games_played: int
    win_rate: float
    average_opponent_rating: float
    recent_matches: list[Match]
    rating_history: list[tuple[datetime, int]]


class TournamentSystem:
    """Owns the player registry and every tournament created through it.

    Tournaments hold cloned player records, so results update the tournament
    standings without writing back to the registry.
    """

    def __init__(
        self,
        config: TournamentConfig | None = None,
        *,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utcnow,
        telemetry: EventSink | None = None,
    ) -> None:
        self._config = config or TournamentConfig()
        self._rng = rng or random.Random()
        self._clock = clock
        self._telemetry = telemetry
        self._players: dict[str, PlayerRecord] = {}
        self._tournaments: dict[str, Tournament] = {}
        self._match_history: list[Match] = []
        self._ids = itertools.count(1)
        self._used_ids: set[str] = set()
        self._seed_ai_players()

    # --- registry ----------------------------------------------------------

    def _seed_ai_players(self) -> None:
        for entry in self._config.ai_roster:
            player = PlayerRecord(
                id=f"ai_{entry.difficulty}",
                name=f"AI {entry.difficulty.capitalize()}",
                kind="ai",
                difficulty=entry.difficulty,
                rating=entry.rating,
            )
            self._players[player.id] = player

    def _next_id(self, prefix: str) -> str:
        # imported tournaments may already hold ids from another session
        while True:
            candidate = f"{prefix}_{next(self._ids)}"
            if candidate not in self._used_ids:
                self._used_ids.add(candidate)
                return candidate

    def add_human_player(self, name: str) -> PlayerRecord:
        if not name.strip():
            raise ValidationError("Player name must not be empty.")
        player = PlayerRecord(
            id=self._next_id("human"), name=name, kind="human", rating=self._config.starting_rating
        )
        self._players[player.id] = player
        self._emit("player_added", {"player_id": player.id, "name": name})
        return player

    def get_player(self, player_id: str) -> PlayerRecord:
        player = self._players.get(player_id)
        if player is None:
            raise ValidationError(f"Player {player_id} not found.")
        return player

    def get_available_players(self) -> list[PlayerRecord]:
        return list(self._players.values())

    # --- tournaments -------------------------------------------------------

    def _tournament(self, tournament_id: str) -> Tournament:
        t = self._tournaments.get(tournament_id)
        if t is None:
            raise ValidationError(f"Tournament {tournament_id} not found.")
        return t

    def _new_match(self, p1: PlayerRecord, p2: PlayerRecord, round_number: int) -> Match:
        return Match(id=self._next_id("match"), player1=p1, player2=p2, round_number=round_number)

    def create_tournament(self, name: str, fmt: TournamentFormat, player_ids: Sequence[str]) -> Tournament:
        if fmt not in FORMATS:
            raise ValidationError(f"Unknown tournament format: {fmt!r}")
        if len(player_ids) < 2:
            raise ValidationError("Tournament requires at least 2 players.")
        if len(set(player_ids)) != len(player_ids):
            raise ValidationError("A player can only enter a tournament once.")
        players = [self.get_player(pid).clone() for pid in player_ids]

        t = Tournament(
            id=self._next_id("tournament"),
            name=name,
            format=fmt,
            players=players,
            total_rounds=brackets.total_rounds(fmt, len(players)),
        )
        brackets.generate(t, self._new_match, self._rng)
        self._tournaments[t.id] = t
        t.event_log.append({"type": "TOURNAMENT_CREATED", "format": fmt, "players": len(players)})
        self._emit("tournament_created", {"tournament_id": t.id, "format": fmt, "players": list(player_ids)})
        return t

    def start_tournament(self, tournament_id: str) -> Tournament:
        t = self._tournament(tournament_id)
        if t.status != "setup":
            raise StateError(f"Tournament {t.id} already started.")
        t.status = "in_progress"
        t.started_at = self._clock()
        t.current_round = 1
        t.event_log.append({"type": "TOURNAMENT_STARTED"})
        self._emit("tournament_started", {"tournament_id": t.id})
        return t

    def get_tournament(self, tournament_id: str) -> Tournament | None:
        return self._tournaments.get(tournament_id)

    def get_all_tournaments(self) -> list[Tournament]:
        return list(self._tournaments.values())

    def get_next_matches(self, tournament_id: str) -> list[Match]:
        return [m for m in self._tournament(tournament_id).matches if not m.resolved]

    def get_standings(self, tournament_id: str) -> list[PlayerRecord]:
        return brackets.standings(self._tournament(tournament_id))

    # --- matches -----------------------------------------------------------

    def _open_match(self, tournament_id: str, match_id: str) -> tuple[Tournament, Match]:
        t = self._tournament(tournament_id)
        m = t.match(match_id)
        if m is None:
            raise ValidationError(f"Match {match_id} not found.")
        if t.status != "in_progress":
            raise StateError(f"Tournament {t.id} is not in progress.")
        if m.resolved:
            raise StateError(f"Match {m.id} already has a result.")
        return t, m

    def record_match_move(self, tournament_id: str, match_id: str, player: Mark, position: Position) -> MatchMove:
        _, m = self._open_match(tournament_id, match_id)
        # replaying the log rejects out-of-range and occupied cells
        board = Board.empty()
        for prior in m.moves:
            board = apply_move(board, prior.position, prior.player)
        if evaluate(board).is_terminal:
            raise StateError(f"Match {m.id} board is already decided.")
        if m.moves and m.moves[-1].player == player:
            raise ValidationError(f"{player} cannot move twice in a row.")
        apply_move(board, position, player)
        now = self._clock()
        if m.started_at is None:
            m.started_at = now
        move = MatchMove(player=player, position=position, timestamp=now)
        m.moves.append(move)
        return move

    def report_match_result(self, tournament_id: str, match_id: str, result: MatchResult) -> Match:
        if result not in ("player1", "player2", "draw"):
            raise ValidationError(f"Not a final match result: {result!r}")
        t, m = self._open_match(tournament_id, match_id)

        m.result = result
        m.ended_at = self._clock()
        if m.started_at is None:
            m.started_at = m.ended_at
        self._update_stats(m)
        self._update_ratings(m)
        self._match_history.append(m)
        t.event_log.append({"type": "MATCH_REPORTED", "match_id": m.id, "result": result})
        self._emit(
            "match_reported",
            {"tournament_id": t.id, "match_id": m.id, "result": result, "ratings": list(m.ratings_after or ())},
        )

        brackets.advance(t, m, self._new_match)
        if brackets.is_complete(t):
            self._complete(t)
        return m

    def _update_stats(self, m: Match) -> None:
        p1, p2 = m.player1.stats, m.player2.stats
        p1.games_played += 1
        p2.games_played += 1
        if m.result == "player1":
            p1.wins += 1
            p2.losses += 1
        elif m.result == "player2":
            p1.losses += 1
            p2.wins += 1
        else:
            p1.draws += 1
            p2.draws += 1

    def _update_ratings(self, m: Match) -> None:
        before = (m.player1.rating, m.player2.rating)
        after = update_ratings(before[0], before[1], m.result, self._config.k_factor)
        m.player1.rating, m.player2.rating = after
        m.ratings_before = before
        m.ratings_after = after

    def _complete(self, t: Tournament) -> None:
        t.winner = brackets.champion(t)
        t.status = "completed"
        t.ended_at = self._clock()
        winner_id = t.winner.id if t.winner is not None else None
        t.event_log.append({"type": "TOURNAMENT_COMPLETED", "winner": winner_id})
        self._emit("tournament_completed", {"tournament_id": t.id, "winner": winner_id})

    # --- analytics / export ------------------------------------------------

    def get_player_analytics(self, player_id: str) -> PlayerAnalytics:
        player = self.get_player(player_id)
        played = [m for m in self._match_history if m.involves(player_id)]

        wins = 0
        opponent_ratings: list[int] = []
        history: list[tuple[datetime, int]] = []
        for m in played:
            first = m.player1.id == player_id
            winner = m.winner()
            if winner is not None and winner.id == player_id:
                wins += 1
            if m.ratings_before is not None:
                opponent_ratings.append(m.ratings_before[1] if first else m.ratings_before[0])
            if m.ratings_after is not None and m.ended_at is not None:
                history.append((m.ended_at, m.ratings_after[0] if first else m.ratings_after[1]))

        return PlayerAnalytics(
            player=player,
            games_played=len(played),
            win_rate=wins / len(played) if played else 0.0,
            average_opponent_rating=sum(opponent_ratings) / len(opponent_ratings) if opponent_ratings else 0.0,
            recent_matches=played[-10:],
            rating_history=history,
        )

    def export_tournament_data(self, tournament_id: str) -> str:
        return json.dumps(tournament_to_dict(self._tournament(tournament_id)), indent=2, ensure_ascii=False)

    def import_tournament_data(self, text: str) -> Tournament:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid tournament data: {e}") from e
        if not isinstance(raw, dict):
            raise ValidationError("Tournament data must be a JSON object.")
        t = tournament_from_dict(raw)
        if t.id in self._tournaments:
            raise ValidationError(f"Tournament {t.id} already exists.")
        self._tournaments[t.id] = t
        self._used_ids.add(t.id)
        self._used_ids.update(m.id for m in t.matches)
        self._emit("tournament_imported", {"tournament_id": t.id})
        return t

    def _emit(self, event_type: str, payload: dict[str, object]) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event_type, payload)
