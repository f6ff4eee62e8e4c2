"""Domain models for rosters and balance requests."""

from .player import MAX_RATING, MIN_RATING, POSITIONS, Player, PositionCode
from .request import BalanceRequest

__all__ = [
    "BalanceRequest",
    "MAX_RATING",
    "MIN_RATING",
    "POSITIONS",
    "Player",
    "PositionCode",
]
