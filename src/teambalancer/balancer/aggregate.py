"""Turn a winning partition into per-team and roster-wide statistics."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Sequence, Tuple

from teambalancer.models import POSITIONS, BalanceRequest, Player

from .search import Partition


@dataclass(frozen=True)
class TeamResult:
    team_number: int
    players: Tuple[Player, ...]
    average_rating: float
    total_rating: float
    position_distribution: Dict[str, int]


@dataclass(frozen=True)
class BalanceResult:
    teams: Tuple[TeamResult, ...]
    overall_mean: float
    max_rating_difference: float
    score: float = 0.0
    best_attempt: int = 0
    attempts_completed: int = 0
    elapsed: float = 0.0


def position_distribution(players: Sequence[Player]) -> Dict[str, int]:
    counts = {position: 0 for position in POSITIONS}
    for player in players:
        counts[player.position] += 1
    return counts


def _team_result(team_number: int, players: Tuple[Player, ...]) -> TeamResult:
    total = sum(player.overall for player in players)
    return TeamResult(
        team_number=team_number,
        players=players,
        average_rating=total / len(players) if players else 0.0,
        total_rating=total,
        position_distribution=position_distribution(players),
    )


def max_rating_difference(teams: Sequence[TeamResult]) -> float:
    return max(
        (abs(first.average_rating - second.average_rating) for first, second in combinations(teams, 2)),
        default=0.0,
    )


def aggregate_partition(
    request: BalanceRequest,
    partition: Partition,
    *,
    score: float = 0.0,
    best_attempt: int = 0,
    attempts_completed: int = 0,
    elapsed: float = 0.0,
) -> BalanceResult:
    """Build the response view of ``partition``; players keep roster order within teams."""

    teams = tuple(
        _team_result(team_idx + 1, tuple(request.players[idx] for idx in members))
        for team_idx, members in enumerate(partition.members())
    )
    roster = request.players
    overall_mean = sum(player.overall for player in roster) / len(roster) if roster else 0.0
    return BalanceResult(
        teams=teams,
        overall_mean=overall_mean,
        max_rating_difference=max_rating_difference(teams),
        score=score,
        best_attempt=best_attempt,
        attempts_completed=attempts_completed,
        elapsed=elapsed,
    )
