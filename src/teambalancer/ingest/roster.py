"""Helpers to load roster CSVs and emit validated balance requests."""

from __future__ import annotations

import csv
import logging
import math
from io import StringIO
from numbers import Real
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from teambalancer.config import BalancerSettings, get_settings
from teambalancer.errors import InsufficientPlayersError, InvalidParameterError, ValidationError
from teambalancer.models import MAX_RATING, MIN_RATING, POSITIONS, BalanceRequest, Player


logger = logging.getLogger(__name__)

DEFAULT_ROSTER_MAPPING = {
    "name": "name",
    "overall": "overall",
    "position": "position",
}


class RosterRow(BaseModel):
    raw_name: str
    raw_overall: str
    raw_position: str
    line: Optional[int] = None

    @classmethod
    def from_mapping(
        cls,
        row: Mapping[str, Optional[str]],
        mapping: Mapping[str, str],
        *,
        line: Optional[int] = None,
    ) -> "RosterRow":
        def extract(key: str) -> str:
            value = row.get(mapping.get(key, key))
            return value.strip() if value is not None else ""

        return cls(
            raw_name=extract("name"),
            raw_overall=extract("overall"),
            raw_position=extract("position"),
            line=line,
        )


def _row_label(index: Optional[int], line: Optional[int] = None) -> str:
    if line is not None:
        return f"line {line}"
    if index is not None:
        return f"player {index + 1}"
    return "player"


def _parse_overall(raw: Any, label: str) -> float:
    if isinstance(raw, bool):
        raise ValidationError(f"{label}: overall must be a number, got {raw!r}")
    if isinstance(raw, Real):
        value = float(raw)
    else:
        text = str(raw).strip() if raw is not None else ""
        if not text:
            raise ValidationError(f"{label}: overall is missing")
        try:
            value = float(text)
        except ValueError:
            raise ValidationError(f"{label}: overall '{text}' is not numeric") from None
    if not math.isfinite(value) or not MIN_RATING <= value <= MAX_RATING:
        raise ValidationError(
            f"{label}: overall {value!r} must be between {MIN_RATING:g} and {MAX_RATING:g}"
        )
    return value


def _parse_position(raw: Any, label: str) -> str:
    text = str(raw).strip() if raw is not None else ""
    if text not in POSITIONS:
        raise ValidationError(
            f"{label}: position {text!r} must be one of {', '.join(POSITIONS)}"
        )
    return text


def normalize_player(raw: Player | RosterRow | Mapping[str, Any], *, index: Optional[int] = None) -> Player:
    """Validate one roster entry and return its canonical ``Player``."""

    if isinstance(raw, Player):
        name, overall, position, line = raw.name, raw.overall, raw.position, None
    elif isinstance(raw, RosterRow):
        name, overall, position, line = raw.raw_name, raw.raw_overall, raw.raw_position, raw.line
    elif isinstance(raw, Mapping):
        name, overall, position, line = raw.get("name"), raw.get("overall"), raw.get("position"), None
    else:
        raise ValidationError(f"{_row_label(index)}: unsupported roster entry {type(raw).__name__}")

    label = _row_label(index, line)
    clean_name = str(name).strip() if name is not None else ""
    if not clean_name:
        raise ValidationError(f"{label}: name is empty")
    return Player(
        name=clean_name,
        overall=_parse_overall(overall, label),
        position=_parse_position(position, label),
    )


def normalize_players(rows: Iterable[Player | RosterRow | Mapping[str, Any]]) -> List[Player]:
    return [normalize_player(row, index=idx) for idx, row in enumerate(rows)]


def _check_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
    return value


def normalize_request(
    players: Sequence[Player | RosterRow | Mapping[str, Any]],
    *,
    num_teams: int,
    time_limit: float,
    num_attempts: int,
    seed: Optional[int] = None,
    settings: BalancerSettings | None = None,
) -> BalanceRequest:
    """Validate request parameters and roster, returning a ``BalanceRequest``.

    Parameters are checked before the roster, and the roster size is checked
    last so that malformed rows are reported even for small rosters.
    """

    settings = settings or get_settings()

    num_teams = _check_int("num_teams", num_teams)
    if not settings.min_teams <= num_teams <= settings.max_teams:
        raise InvalidParameterError(
            f"num_teams must be between {settings.min_teams} and {settings.max_teams}, got {num_teams}"
        )

    if isinstance(time_limit, bool) or not isinstance(time_limit, Real):
        raise InvalidParameterError(f"time_limit must be a number, got {time_limit!r}")
    time_limit = float(time_limit)
    if not math.isfinite(time_limit) or time_limit <= 0:
        raise InvalidParameterError(f"time_limit must be positive, got {time_limit!r}")
    if time_limit > settings.max_time_limit:
        raise InvalidParameterError(
            f"time_limit must be at most {settings.max_time_limit:g} seconds, got {time_limit:g}"
        )

    num_attempts = _check_int("num_attempts", num_attempts)
    if not 1 <= num_attempts <= settings.max_num_attempts:
        raise InvalidParameterError(
            f"num_attempts must be between 1 and {settings.max_num_attempts}, got {num_attempts}"
        )

    if seed is not None:
        seed = _check_int("seed", seed)

    roster = normalize_players(players)
    minimum = max(settings.min_players, num_teams)
    if len(roster) < minimum:
        raise InsufficientPlayersError(
            f"{len(roster)} players cannot form {num_teams} teams; at least {minimum} players are required"
        )

    logger.debug(
        "Normalized roster of %s players for %s teams (time_limit=%.1fs, attempts=%s)",
        len(roster),
        num_teams,
        time_limit,
        num_attempts,
    )
    return BalanceRequest(
        players=tuple(roster),
        num_teams=num_teams,
        time_limit=time_limit,
        num_attempts=num_attempts,
        seed=seed,
    )


def decode_roster_bytes(contents: bytes) -> str:
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError(f"roster file is not valid UTF-8: {exc}") from None


def parse_roster_csv(text: str, *, mapping: Mapping[str, str] | None = None) -> List[RosterRow]:
    """Parse roster CSV text (header row required) into raw rows."""

    mapping = {**DEFAULT_ROSTER_MAPPING, **(mapping or {})}
    if not text.strip():
        raise ValidationError("roster file is empty")

    reader = csv.DictReader(StringIO(text, newline=""))
    if reader.fieldnames is None:
        raise ValidationError("roster file is empty")
    reader.fieldnames = [header.strip() for header in reader.fieldnames]
    missing = [column for column in mapping.values() if column not in reader.fieldnames]
    if missing:
        raise ValidationError(
            f"roster file is missing required column(s): {', '.join(missing)}"
        )

    rows: List[RosterRow] = []
    for row in reader:
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        rows.append(RosterRow.from_mapping(row, mapping, line=reader.line_num))
    logger.debug("Parsed %s roster rows", len(rows))
    return rows


def load_roster_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[RosterRow]:
    return parse_roster_csv(decode_roster_bytes(path.read_bytes()), mapping=mapping)


def load_players_from_csv(path: Path, *, mapping: Mapping[str, str] | None = None) -> List[Player]:
    return normalize_players(load_roster_csv(path, mapping=mapping))
