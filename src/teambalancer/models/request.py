from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .player import Player


@dataclass(frozen=True)
class BalanceRequest:
    players: Tuple[Player, ...]
    num_teams: int
    time_limit: float
    num_attempts: int
    seed: Optional[int] = None

    @property
    def num_players(self) -> int:
        return len(self.players)
