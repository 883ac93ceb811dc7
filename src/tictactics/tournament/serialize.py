from __future__ import annotations

from datetime import datetime
from typing import Mapping

from ..engine.types import DIFFICULTIES, Position
from ..errors import ValidationError
from .types import (
    FORMATS,
    RESULTS,
    Bracket,
    Match,
    MatchMove,
    PlayerRecord,
    PlayerStats,
    Tournament,
)


def _ts(d: datetime | None) -> str | None:
    return d.isoformat() if d is not None else None


def player_to_dict(p: PlayerRecord) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "kind": p.kind,
        "difficulty": p.difficulty,
        "rating": p.rating,
        "stats": {
            "wins": p.stats.wins,
            "losses": p.stats.losses,
            "draws": p.stats.draws,
            "games_played": p.stats.games_played,
        },
    }


def match_to_dict(m: Match) -> dict[str, object]:
    return {
        "id": m.id,
        "player1": m.player1.id,
        "player2": m.player2.id,
        "round_number": m.round_number,
        "result": m.result,
        "moves": [
            {"player": mv.player, "row": mv.position.row, "col": mv.position.col, "timestamp": _ts(mv.timestamp)}
            for mv in m.moves
        ],
        "started_at": _ts(m.started_at),
        "ended_at": _ts(m.ended_at),
        "ratings_before": list(m.ratings_before) if m.ratings_before else None,
        "ratings_after": list(m.ratings_after) if m.ratings_after else None,
    }


def _ids(matches: list[Match]) -> list[str]:
    return [m.id for m in matches]


def tournament_to_dict(t: Tournament) -> dict[str, object]:
    """Return a JSON-serializable snapshot; matches refer to players by id."""
    b = t.bracket
    return {
        "id": t.id,
        "name": t.name,
        "format": t.format,
        "status": t.status,
        "current_round": t.current_round,
        "total_rounds": t.total_rounds,
        "winner": t.winner.id if t.winner is not None else None,
        "started_at": _ts(t.started_at),
        "ended_at": _ts(t.ended_at),
        "players": [player_to_dict(p) for p in t.players],
        "matches": [match_to_dict(m) for m in t.matches],
        "bracket": {
            "rounds": [_ids(r) for r in b.rounds],
            "entrants": [list(e) for e in b.entrants],
            "losers_rounds": [_ids(r) for r in b.losers_rounds],
            "losers_queue": [p.id for p in b.losers_queue],
            "grand_final": b.grand_final.id if b.grand_final is not None else None,
            "byes": list(b.byes),
        },
    }


# --- loading ---------------------------------------------------------------


def _req(obj: Mapping[str, object], key: str, typ: type | tuple[type, ...]) -> object:
    v = obj.get(key)
    if not isinstance(v, typ):
        raise ValidationError(f"Expected {key} to be {typ}")
    return v


def _opt_ts(obj: Mapping[str, object], key: str) -> datetime | None:
    v = obj.get(key)
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValidationError(f"Expected timestamp string for {key}")
    try:
        return datetime.fromisoformat(v)
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp for {key}: {v!r}") from e


def _ts_req(obj: Mapping[str, object], key: str) -> datetime:
    v = _opt_ts(obj, key)
    if v is None:
        raise ValidationError(f"Missing timestamp for {key}")
    return v


def _pair(v: object) -> tuple[int, int] | None:
    if v is None:
        return None
    if not isinstance(v, list) or len(v) != 2 or not all(isinstance(r, int) for r in v):
        raise ValidationError("Rating pairs must hold two integers")
    return v[0], v[1]


def _seq(v: object) -> list[object]:
    if not isinstance(v, list):
        raise ValidationError(f"Expected a list, got {type(v).__name__}")
    return v


def _entrant(v: object) -> str | None:
    if v is not None and not isinstance(v, str):
        raise ValidationError(f"Bracket entrants must be player ids, got {v!r}")
    return v


def _count(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key, 0)
    if not isinstance(v, int) or v < 0:
        raise ValidationError(f"Expected a non-negative count for {key}")
    return v


def move_from_dict(d: object) -> MatchMove:
    if not isinstance(d, dict):
        raise ValidationError("Each move must be an object")
    player = d.get("player")
    if player not in ("X", "O"):
        raise ValidationError(f"Unknown player mark: {player!r}")
    row, col = _req(d, "row", int), _req(d, "col", int)
    position = Position(row, col)  # type: ignore[arg-type]
    if not position.in_range():
        raise ValidationError(f"Move position out of range: ({row}, {col})")
    return MatchMove(player=player, position=position, timestamp=_ts_req(d, "timestamp"))


def player_from_dict(d: Mapping[str, object]) -> PlayerRecord:
    stats = _req(d, "stats", dict)
    assert isinstance(stats, dict)
    kind = _req(d, "kind", str)
    if kind not in ("human", "ai"):
        raise ValidationError(f"Unknown player kind: {kind!r}")
    difficulty = d.get("difficulty")
    if difficulty is not None and difficulty not in DIFFICULTIES:
        raise ValidationError(f"Unknown difficulty: {difficulty!r}")
    return PlayerRecord(
        id=str(_req(d, "id", str)),
        name=str(_req(d, "name", str)),
        kind=kind,  # type: ignore[arg-type]
        rating=int(_req(d, "rating", int)),  # type: ignore[arg-type]
        difficulty=difficulty,  # type: ignore[arg-type]
        stats=PlayerStats(
            wins=_count(stats, "wins"),
            losses=_count(stats, "losses"),
            draws=_count(stats, "draws"),
            games_played=_count(stats, "games_played"),
        ),
    )


def tournament_from_dict(d: Mapping[str, object]) -> Tournament:
    """Rebuild a tournament from `tournament_to_dict` output."""
    fmt = _req(d, "format", str)
    if fmt not in FORMATS:
        raise ValidationError(f"Unknown tournament format: {fmt!r}")

    players = [player_from_dict(p) for p in _req(d, "players", list) if isinstance(p, dict)]  # type: ignore[union-attr]
    by_id = {p.id: p for p in players}

    def player(pid: object) -> PlayerRecord:
        if not isinstance(pid, str) or pid not in by_id:
            raise ValidationError(f"Unknown player reference: {pid!r}")
        return by_id[pid]

    matches: dict[str, Match] = {}
    for raw in _req(d, "matches", list):  # type: ignore[union-attr]
        if not isinstance(raw, dict):
            continue
        result = raw.get("result")
        if result not in RESULTS:
            raise ValidationError(f"Unknown match result: {result!r}")
        moves = [move_from_dict(mv) for mv in _req(raw, "moves", list)]  # type: ignore[union-attr]
        m = Match(
            id=str(_req(raw, "id", str)),
            player1=player(raw.get("player1")),
            player2=player(raw.get("player2")),
            round_number=int(_req(raw, "round_number", int)),  # type: ignore[arg-type]
            result=result,
            moves=moves,
            started_at=_opt_ts(raw, "started_at"),
            ended_at=_opt_ts(raw, "ended_at"),
            ratings_before=_pair(raw.get("ratings_before")),
            ratings_after=_pair(raw.get("ratings_after")),
        )
        matches[m.id] = m

    def match(mid: object) -> Match:
        if not isinstance(mid, str) or mid not in matches:
            raise ValidationError(f"Unknown match reference: {mid!r}")
        return matches[mid]

    raw_b = _req(d, "bracket", dict)
    assert isinstance(raw_b, dict)
    gf = raw_b.get("grand_final")
    bracket = Bracket(
        rounds=[[match(mid) for mid in _seq(r)] for r in _seq(raw_b.get("rounds", []))],
        entrants=[[_entrant(e) for e in _seq(r)] for r in _seq(raw_b.get("entrants", []))],
        losers_rounds=[[match(mid) for mid in _seq(r)] for r in _seq(raw_b.get("losers_rounds", []))],
        losers_queue=[player(pid) for pid in _seq(raw_b.get("losers_queue", []))],
        grand_final=match(gf) if gf is not None else None,
        byes=[player(pid).id for pid in _seq(raw_b.get("byes", []))],
    )

    status = _req(d, "status", str)
    if status not in ("setup", "in_progress", "completed"):
        raise ValidationError(f"Unknown tournament status: {status!r}")
    winner_id = d.get("winner")
    t = Tournament(
        id=str(_req(d, "id", str)),
        name=str(_req(d, "name", str)),
        format=fmt,  # type: ignore[arg-type]
        players=players,
        total_rounds=int(_req(d, "total_rounds", int)),  # type: ignore[arg-type]
        status=status,  # type: ignore[arg-type]
        matches=list(matches.values()),
        bracket=bracket,
        current_round=int(_req(d, "current_round", int)),  # type: ignore[arg-type]
        winner=player(winner_id) if winner_id is not None else None,
        started_at=_opt_ts(d, "started_at"),
        ended_at=_opt_ts(d, "ended_at"),
    )
    if (t.winner is not None) != (t.status == "completed"):
        raise ValidationError("A tournament has a winner exactly when it is completed.")
    return t
