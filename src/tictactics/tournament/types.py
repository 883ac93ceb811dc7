from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Mapping, Protocol

from ..engine.types import Difficulty, Mark, Position

PlayerKind = Literal["human", "ai"]
TournamentFormat = Literal["single_elimination", "double_elimination", "round_robin", "swiss"]
TournamentStatus = Literal["setup", "in_progress", "completed"]
MatchResult = Literal["pending", "player1", "player2", "draw"]

FORMATS: tuple[TournamentFormat, ...] = ("single_elimination", "double_elimination", "round_robin", "swiss")
RESULTS: tuple[MatchResult, ...] = ("pending", "player1", "player2", "draw")

LOSERS_ROUND_OFFSET = 100
GRAND_FINAL_ROUND = 999

Event = dict[str, object]


class EventSink(Protocol):
    def log(self, event_type: str, payload: Mapping[str, object]) -> None: ...


@dataclass(frozen=True)
class RosterEntry:
    difficulty: Difficulty
    rating: int


@dataclass(frozen=True)
class TournamentConfig:
    k_factor: int = 32
    starting_rating: int = 1200
    ai_roster: tuple[RosterEntry, ...] = (
        RosterEntry("easy", 1200),
        RosterEntry("medium", 1400),
        RosterEntry("hard", 1600),
        RosterEntry("expert", 1800),
        RosterEntry("impossible", 2000),
    )


@dataclass
class PlayerStats:
    wins: int = 0
    losses: int = 0
    draws: int = 0
    games_played: int = 0


@dataclass
class PlayerRecord:
    id: str
    name: str
    kind: PlayerKind
    rating: int
    difficulty: Difficulty | None = None
    stats: PlayerStats = field(default_factory=PlayerStats)

    def clone(self) -> "PlayerRecord":
        return replace(self, stats=replace(self.stats))


@dataclass(frozen=True)
class MatchMove:
    player: Mark
    position: Position
    timestamp: datetime


@dataclass
class Match:
    id: str
    player1: PlayerRecord
    player2: PlayerRecord
    round_number: int
    result: MatchResult = "pending"
    moves: list[MatchMove] = field(default_factory=list)
    started_at: datetime | None = None
    ended_at: datetime | None = None
    # (player1, player2) ratings around the rating update
    ratings_before: tuple[int, int] | None = None
    ratings_after: tuple[int, int] | None = None

    @property
    def resolved(self) -> bool:
        return self.result != "pending"

    def involves(self, player_id: str) -> bool:
        return self.player1.id == player_id or self.player2.id == player_id

    def winner(self) -> PlayerRecord | None:
        if self.result == "player1":
            return self.player1
        if self.result == "player2":
            return self.player2
        return None

    def advancing(self) -> PlayerRecord:
        """Side that goes through in an elimination bracket; a draw sends player1."""
        return self.player2 if self.result == "player2" else self.player1

    def eliminated(self) -> PlayerRecord:
        return self.player1 if self.result == "player2" else self.player2


@dataclass
class Bracket:
    rounds: list[list[Match]] = field(default_factory=list)
    # Padded single-elimination entrants per round, by player id; None is a bye.
    entrants: list[list[str | None]] = field(default_factory=list)
    losers_rounds: list[list[Match]] = field(default_factory=list)
    losers_queue: list[PlayerRecord] = field(default_factory=list)
    grand_final: Match | None = None
    # Swiss players who already sat out a round.
    byes: list[str] = field(default_factory=list)


@dataclass
class Tournament:
    id: str
    name: str
    format: TournamentFormat
    players: list[PlayerRecord]
    total_rounds: int
    status: TournamentStatus = "setup"
    matches: list[Match] = field(default_factory=list)
    bracket: Bracket = field(default_factory=Bracket)
    current_round: int = 0
    winner: PlayerRecord | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    event_log: list[Event] = field(default_factory=list)

    def player(self, player_id: str) -> PlayerRecord | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def match(self, match_id: str) -> Match | None:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None

    def round_matches(self, round_number: int) -> list[Match]:
        return [m for m in self.matches if m.round_number == round_number]
