"""Team balancing engine: partition search plus result aggregation."""

from .aggregate import BalanceResult, TeamResult, aggregate_partition
from .search import Partition, SearchOutcome, SearchWeights, fairness_score, search_partition
from .service import balance_roster

__all__ = [
    "BalanceResult",
    "Partition",
    "SearchOutcome",
    "SearchWeights",
    "TeamResult",
    "aggregate_partition",
    "balance_roster",
    "fairness_score",
    "search_partition",
]
