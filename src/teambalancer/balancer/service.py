"""Entry point tying the partition search to the result aggregator."""

from __future__ import annotations

import logging

from teambalancer.config import BalancerSettings, get_settings
from teambalancer.models import BalanceRequest

from .aggregate import BalanceResult, aggregate_partition
from .search import search_partition


logger = logging.getLogger("uvicorn.error")


def balance_roster(
    request: BalanceRequest,
    *,
    parallel_jobs: int | None = None,
    settings: BalancerSettings | None = None,
) -> BalanceResult:
    """Search for balanced teams and summarize the winning partition."""

    settings = settings or get_settings()
    outcome = search_partition(request, parallel_jobs=parallel_jobs, settings=settings)
    result = aggregate_partition(
        request,
        outcome.partition,
        score=outcome.score,
        best_attempt=outcome.best_attempt,
        attempts_completed=outcome.attempts_completed,
        elapsed=outcome.elapsed,
    )
    logger.info(
        "Balanced %s players into %s teams – averages %s, max difference %.3f",
        request.num_players,
        request.num_teams,
        ", ".join(f"{team.average_rating:.2f}" for team in result.teams),
        result.max_rating_difference,
    )
    return result
