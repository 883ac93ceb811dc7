"""Bracket generation and round advancement for every tournament format.

Functions here only touch the tournament they are given. New matches are
built through a `MatchFactory` so that id allocation stays with the owner.
"""

from __future__ import annotations

import random
from collections.abc import Callable

from .types import (
    GRAND_FINAL_ROUND,
    LOSERS_ROUND_OFFSET,
    Match,
    PlayerRecord,
    Tournament,
    TournamentFormat,
)

MatchFactory = Callable[[PlayerRecord, PlayerRecord, int], Match]


def elimination_rounds(player_count: int) -> int:
    # ceil(log2(n)) for n >= 2
    return max(1, (player_count - 1).bit_length())


def total_rounds(fmt: TournamentFormat, player_count: int) -> int:
    if fmt == "single_elimination":
        return elimination_rounds(player_count)
    if fmt == "double_elimination":
        return 2 * elimination_rounds(player_count)
    if fmt == "round_robin":
        return 1
    if fmt == "swiss":
        return elimination_rounds(player_count)
    raise ValueError(f"Unknown format: {fmt!r}")


def generate(t: Tournament, new_match: MatchFactory, rng: random.Random) -> None:
    if t.format in ("single_elimination", "double_elimination"):
        _seed_elimination(t, new_match)
    elif t.format == "round_robin":
        _round_robin(t, new_match)
    elif t.format == "swiss":
        _swiss_first_round(t, new_match, rng)


def advance(t: Tournament, resolved: Match, new_match: MatchFactory) -> None:
    """Create whatever matches became playable after `resolved` got its result."""
    if t.format == "single_elimination":
        _advance_winners(t, new_match, elimination_rounds(len(t.players)))
    elif t.format == "double_elimination":
        _advance_double(t, resolved, new_match)
    elif t.format == "swiss":
        _advance_swiss(t, new_match)
    # round robin plays everything in round 1


def is_complete(t: Tournament) -> bool:
    if t.format == "double_elimination":
        gf = t.bracket.grand_final
        return gf is not None and gf.resolved
    final = t.round_matches(t.total_rounds)
    if t.format == "swiss" and t.current_round < t.total_rounds:
        return False
    return bool(final) and all(m.resolved for m in final)


def champion(t: Tournament) -> PlayerRecord | None:
    """Winner of a finished tournament."""
    if t.format == "double_elimination":
        gf = t.bracket.grand_final
        return gf.advancing() if gf is not None else None
    if t.format == "single_elimination":
        final = t.round_matches(t.total_rounds)
        return final[-1].advancing() if final else None
    ranked = standings(t)
    return ranked[0] if ranked else None


def standings(t: Tournament) -> list[PlayerRecord]:
    return sorted(t.players, key=lambda p: (p.stats.wins, p.rating), reverse=True)


# --- elimination -----------------------------------------------------------


def _open_round(
    t: Tournament, entrants: list[str | None], round_number: int, new_match: MatchFactory
) -> list[Match]:
    t.bracket.entrants.append(entrants)
    matches: list[Match] = []
    for i in range(0, len(entrants), 2):
        a, b = entrants[i], entrants[i + 1]
        if a is None or b is None:
            continue  # bye: no match, the present side advances
        p1, p2 = t.player(a), t.player(b)
        assert p1 is not None and p2 is not None
        m = new_match(p1, p2, round_number)
        matches.append(m)
        t.matches.append(m)
    t.bracket.rounds.append(matches)
    return matches


def _seed_elimination(t: Tournament, new_match: MatchFactory) -> None:
    size = 1 << elimination_rounds(len(t.players))
    entrants: list[str | None] = [p.id for p in t.players]
    entrants += [None] * (size - len(entrants))
    _open_round(t, entrants, 1, new_match)


def _next_entrants(entrants: list[str | None], matches: list[Match]) -> list[str | None]:
    played = iter(matches)
    out: list[str | None] = []
    for i in range(0, len(entrants), 2):
        a, b = entrants[i], entrants[i + 1]
        if a is not None and b is not None:
            out.append(next(played).advancing().id)
        else:
            out.append(a if a is not None else b)
    return out


def _advance_winners(t: Tournament, new_match: MatchFactory, rounds: int) -> None:
    # Loops because a round made only of byes resolves immediately.
    while t.current_round < rounds:
        current = t.bracket.rounds[t.current_round - 1]
        if any(not m.resolved for m in current):
            return
        entrants = _next_entrants(t.bracket.entrants[t.current_round - 1], current)
        t.current_round += 1
        opened = _open_round(t, entrants, t.current_round, new_match)
        t.event_log.append({"type": "ROUND_OPENED", "round": t.current_round, "matches": len(opened)})
        if opened:
            return


def _winners_champion(t: Tournament) -> PlayerRecord | None:
    rounds = elimination_rounds(len(t.players))
    if len(t.bracket.rounds) < rounds:
        return None
    final = t.bracket.rounds[rounds - 1]
    if not final or any(not m.resolved for m in final):
        return None
    return final[-1].advancing()


def _advance_double(t: Tournament, resolved: Match, new_match: MatchFactory) -> None:
    b = t.bracket
    if resolved is b.grand_final:
        return
    if resolved.round_number > LOSERS_ROUND_OFFSET:
        # second loss: the eliminated side is out for good
        b.losers_queue.append(resolved.advancing())
    else:
        b.losers_queue.append(resolved.eliminated())
        _advance_winners(t, new_match, elimination_rounds(len(t.players)))

    losers_pending = any(not m.resolved for rnd in b.losers_rounds for m in rnd)
    if not losers_pending and len(b.losers_queue) >= 2:
        paired = len(b.losers_queue) // 2 * 2
        queue, b.losers_queue = b.losers_queue[:paired], b.losers_queue[paired:]
        round_number = LOSERS_ROUND_OFFSET + len(b.losers_rounds) + 1
        matches: list[Match] = []
        for i in range(0, paired, 2):
            m = new_match(queue[i], queue[i + 1], round_number)
            matches.append(m)
            t.matches.append(m)
        b.losers_rounds.append(matches)
        t.event_log.append({"type": "ROUND_OPENED", "round": round_number, "matches": len(matches)})
        return

    top = _winners_champion(t)
    if top is not None and b.grand_final is None and not losers_pending and len(b.losers_queue) == 1:
        b.grand_final = new_match(top, b.losers_queue.pop(), GRAND_FINAL_ROUND)
        t.matches.append(b.grand_final)
        t.event_log.append({"type": "ROUND_OPENED", "round": GRAND_FINAL_ROUND, "matches": 1})


# --- round robin -----------------------------------------------------------


def _round_robin(t: Tournament, new_match: MatchFactory) -> None:
    players = t.players
    matches: list[Match] = []
    for i in range(len(players)):
        for j in range(i + 1, len(players)):
            m = new_match(players[i], players[j], 1)
            matches.append(m)
            t.matches.append(m)
    t.bracket.rounds = [matches]


# --- swiss -----------------------------------------------------------------


def swiss_points(t: Tournament, player_id: str) -> float:
    points = float(t.bracket.byes.count(player_id))
    for m in t.matches:
        if not m.resolved or not m.involves(player_id):
            continue
        if m.result == "draw":
            points += 0.5
            continue
        won = m.winner()
        if won is not None and won.id == player_id:
            points += 1.0
    return points


def pair_avoiding_rematches(
    ordered: list[PlayerRecord], met: set[frozenset[str]]
) -> list[tuple[PlayerRecord, PlayerRecord]] | None:
    """Pair `ordered` top-down without repeating a game in `met`.

    The highest-ranked unpaired player takes the best-ranked opponent that
    still leaves a complete pairing for the rest. Returns None when no
    rematch-free pairing exists.
    """
    if not ordered:
        return []
    head, rest = ordered[0], ordered[1:]
    for i, opponent in enumerate(rest):
        if frozenset((head.id, opponent.id)) in met:
            continue
        tail = pair_avoiding_rematches(rest[:i] + rest[i + 1 :], met)
        if tail is not None:
            return [(head, opponent)] + tail
    return None


def _pair_round(t: Tournament, ordered: list[PlayerRecord], round_number: int, new_match: MatchFactory) -> None:
    pool = list(ordered)
    if len(pool) % 2 == 1:
        # lowest-ranked player who has not sat out yet gets the bye
        candidates = [p for p in reversed(pool) if p.id not in t.bracket.byes]
        bye = candidates[0] if candidates else pool[-1]
        pool.remove(bye)
        t.bracket.byes.append(bye.id)
        t.event_log.append({"type": "BYE", "round": round_number, "player_id": bye.id})

    met = {frozenset((m.player1.id, m.player2.id)) for m in t.matches}
    pairs = pair_avoiding_rematches(pool, met)
    if pairs is None:
        # every pairing repeats a game; fall back to plain standings order
        pairs = [(pool[i], pool[i + 1]) for i in range(0, len(pool), 2)]

    matches: list[Match] = []
    for a, b in pairs:
        m = new_match(a, b, round_number)
        matches.append(m)
        t.matches.append(m)
    t.bracket.rounds.append(matches)


def _swiss_first_round(t: Tournament, new_match: MatchFactory, rng: random.Random) -> None:
    shuffled = list(t.players)
    rng.shuffle(shuffled)
    _pair_round(t, shuffled, 1, new_match)


def _advance_swiss(t: Tournament, new_match: MatchFactory) -> None:
    if t.current_round >= t.total_rounds:
        return
    if any(not m.resolved for m in t.round_matches(t.current_round)):
        return
    seed = {p.id: i for i, p in enumerate(t.players)}
    ordered = sorted(t.players, key=lambda p: (-swiss_points(t, p.id), -p.rating, seed[p.id]))
    t.current_round += 1
    _pair_round(t, ordered, t.current_round, new_match)
    t.event_log.append(
        {"type": "ROUND_OPENED", "round": t.current_round, "matches": len(t.round_matches(t.current_round))}
    )
