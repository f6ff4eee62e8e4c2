"""Input adapters that normalize raw roster data."""

from .roster import (
    DEFAULT_ROSTER_MAPPING,
    RosterRow,
    decode_roster_bytes,
    load_players_from_csv,
    load_roster_csv,
    normalize_player,
    normalize_players,
    normalize_request,
    parse_roster_csv,
)

__all__ = [
    "DEFAULT_ROSTER_MAPPING",
    "RosterRow",
    "decode_roster_bytes",
    "load_players_from_csv",
    "load_roster_csv",
    "normalize_player",
    "normalize_players",
    "normalize_request",
    "parse_roster_csv",
]
