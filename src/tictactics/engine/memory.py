from __future__ import annotations

from dataclasses import dataclass, field

from .board import fingerprint
from .types import Board, Mark, Position


@dataclass(frozen=True)
class PatternEntry:
    count: int
    position: Position
    player: Mark


@dataclass
class PatternMemory:
    """Fingerprint -> reinforcement count, plus the move last chosen there.

    This is a plain counter, not a learned model. It lives as long as the
    decision engine that owns it; resetting a game does not clear it.
    """

    entries: dict[str, PatternEntry] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def count(self, board: Board) -> int:
        entry = self.entries.get(fingerprint(board))
        return entry.count if entry is not None else 0

    def reinforce(self, board: Board, position: Position, player: Mark) -> int:
        key = fingerprint(board)
        prev = self.entries.get(key)
        count = (prev.count if prev is not None else 0) + 1
        self.entries[key] = PatternEntry(count=count, position=position, player=player)
        return count

    def recall(self, board: Board, player: Mark, threshold: int) -> PatternEntry | None:
        """Return the rewarded move for this exact board once it passed `threshold`.

        The entry is only returned if it was recorded for the same mover and
        its cell is still empty.
        """
        entry = self.entries.get(fingerprint(board))
        if entry is None or entry.count <= threshold:
            return None
        if entry.player != player or board.at(entry.position) is not None:
            return None
        return entry

    def clear(self) -> None:
        self.entries.clear()
