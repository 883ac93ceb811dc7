from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from tictactics.engine.types import DIFFICULTIES, EngineConfig
from tictactics.tournament.types import RosterEntry, TournamentConfig


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_int(obj: Mapping[str, object], key: str) -> int:
    v = obj.get(key)
    if not isinstance(v, int):
        raise ContentError(f"Expected int for {key}")
    return v


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def _load_validated(self, name: str) -> dict[str, object]:
        path = self._data_dir / f"{name}.json"
        raw = _load_json(path)
        schema = _load_json(self._schema_dir / f"{name}.schema.json")
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError(f"{path.name} must be an object")
        return raw

    def load_engine_config(self) -> EngineConfig:
        raw = self._load_validated("engine")
        bonus = raw.get("positional_bonus")
        if not isinstance(bonus, dict):
            raise ContentError("engine.json.positional_bonus must be an object")
        difficulty = raw.get("default_difficulty")
        if difficulty not in DIFFICULTIES:
            raise ContentError(f"Unknown default_difficulty: {difficulty!r}")
        return EngineConfig(
            pattern_threshold=_require_int(raw, "pattern_threshold"),
            center_bonus=_require_int(bonus, "center"),
            corner_bonus=_require_int(bonus, "corner"),
            edge_bonus=_require_int(bonus, "edge"),
            default_difficulty=difficulty,  # type: ignore[arg-type]
            replay_rewarded_move=bool(raw.get("replay_rewarded_move", True)),
        )

    def load_tournament_config(self) -> TournamentConfig:
        raw = self._load_validated("tournament")
        roster_raw = raw.get("ai_roster")
        if not isinstance(roster_raw, list):
            raise ContentError("tournament.json.ai_roster must be a list")
        roster: list[RosterEntry] = []
        for item in roster_raw:
            if not isinstance(item, dict):
                continue
            roster.append(
                RosterEntry(difficulty=item["difficulty"], rating=_require_int(item, "rating"))  # schema restricts values
            )
        return TournamentConfig(
            k_factor=_require_int(raw, "k_factor"),
            starting_rating=_require_int(raw, "starting_rating"),
            ai_roster=tuple(roster),
        )

    def validate_tournament_export(self, text: str) -> dict[str, object]:
        """Parse an exported tournament document and check it against its schema."""
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise ContentError(f"Invalid tournament export: {e}") from e
        schema = _load_json(self._schema_dir / "tournament_export.schema.json")
        validate_json(raw, schema, context="tournament export")
        if not isinstance(raw, dict):
            raise ContentError("Tournament export must be an object")
        return raw

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_engine_config()
        _ = self.load_tournament_config()
