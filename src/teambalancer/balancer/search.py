"""Randomized construct-then-hill-climb search over roster partitions."""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
import queue as queue_module
import random
import time
from dataclasses import dataclass
from itertools import chain
from typing import List, Optional, Sequence, Tuple

from teambalancer.config import BalancerSettings, get_settings
from teambalancer.errors import SearchExhaustedError
from teambalancer.models import POSITIONS, BalanceRequest, Player


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)

_EPSILON = 1e-9
_POLL_INTERVAL = 0.5
_POSITION_INDEX = {position: idx for idx, position in enumerate(POSITIONS)}


@dataclass(frozen=True)
class SearchWeights:
    rating: float = 1.0
    position: float = 0.25

    @classmethod
    def from_settings(cls, settings: BalancerSettings) -> "SearchWeights":
        return cls(rating=settings.rating_weight, position=settings.position_weight)


@dataclass(frozen=True)
class Partition:
    """Team index per roster player, aligned with the request's player order."""

    assignment: Tuple[int, ...]
    num_teams: int

    def members(self) -> List[List[int]]:
        teams: List[List[int]] = [[] for _ in range(self.num_teams)]
        for player_idx, team_idx in enumerate(self.assignment):
            teams[team_idx].append(player_idx)
        return teams

    def team_sizes(self) -> List[int]:
        return [len(team) for team in self.members()]

    def is_valid(self, num_players: int) -> bool:
        if len(self.assignment) != num_players:
            return False
        if any(not 0 <= team < self.num_teams for team in self.assignment):
            return False
        sizes = self.team_sizes()
        return min(sizes) >= 1 and max(sizes) - min(sizes) <= 1


@dataclass(frozen=True)
class AttemptResult:
    attempt: int
    seed: int
    partition: Partition
    score: float
    swaps: int
    elapsed: float


@dataclass(frozen=True)
class SearchOutcome:
    partition: Partition
    score: float
    best_attempt: int
    attempts_completed: int
    elapsed: float
    timed_out: bool


@dataclass(frozen=True)
class AttemptConfig:
    attempt: int
    seed: int
    players: Tuple[Player, ...]
    num_teams: int
    weights: SearchWeights
    max_swap_passes: int
    max_swap_checks: int = 20000


@dataclass(frozen=True)
class AttemptFailure:
    attempt: int
    error: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _ideal_position_counts(players: Sequence[Player], num_teams: int) -> List[int]:
    totals = [0] * len(POSITIONS)
    for player in players:
        totals[_POSITION_INDEX[player.position]] += 1
    return [_round_half_up(count / num_teams) for count in totals]


class _TeamTotals:
    """Running per-team sums used to score partitions incrementally."""

    def __init__(self, players: Sequence[Player], num_teams: int, weights: SearchWeights):
        self.players = players
        self.num_teams = num_teams
        self.weights = weights
        self.ideals = _ideal_position_counts(players, num_teams)
        self.totals = [0.0] * num_teams
        self.sizes = [0] * num_teams
        self.position_counts = [[0] * len(POSITIONS) for _ in range(num_teams)]

    def add(self, player_idx: int, team: int) -> None:
        player = self.players[player_idx]
        self.totals[team] += player.overall
        self.sizes[team] += 1
        self.position_counts[team][_POSITION_INDEX[player.position]] += 1

    def remove(self, player_idx: int, team: int) -> None:
        player = self.players[player_idx]
        self.totals[team] -= player.overall
        self.sizes[team] -= 1
        self.position_counts[team][_POSITION_INDEX[player.position]] -= 1

    def swap(self, first: int, first_team: int, second: int, second_team: int) -> None:
        self.remove(first, first_team)
        self.remove(second, second_team)
        self.add(first, second_team)
        self.add(second, first_team)

    def score(self) -> float:
        averages = [
            total / size if size else 0.0 for total, size in zip(self.totals, self.sizes)
        ]
        spread = max(averages) - min(averages)
        mean = sum(averages) / len(averages)
        variance = sum((avg - mean) ** 2 for avg in averages) / len(averages)
        deviation = sum(
            abs(counts[pos] - self.ideals[pos])
            for counts in self.position_counts
            for pos in range(len(POSITIONS))
        )
        return self.weights.rating * (spread + variance) + self.weights.position * deviation


def fairness_score(
    players: Sequence[Player],
    partition: Partition,
    weights: SearchWeights | None = None,
) -> float:
    """Score a partition; lower is fairer."""

    state = _TeamTotals(players, partition.num_teams, weights or SearchWeights())
    for player_idx, team in enumerate(partition.assignment):
        state.add(player_idx, team)
    return state.score()


def _construct_partition(
    players: Sequence[Player],
    num_teams: int,
    rng: random.Random,
    state: _TeamTotals,
) -> List[int]:
    """Greedy longest-processing-time style assignment with position tiers."""

    groups: dict[str, list[int]] = {position: [] for position in POSITIONS}
    for idx, player in enumerate(players):
        groups[player.position].append(idx)
    for group in groups.values():
        rng.shuffle(group)
    quotas = {position: math.ceil(len(group) / num_teams) for position, group in groups.items()}

    # sort is stable, so the shuffles decide ties between equal ratings
    order = sorted(chain.from_iterable(groups.values()), key=lambda idx: -players[idx].overall)

    base_size, oversized_slots = divmod(len(players), num_teams)
    oversized = 0
    assignment = [-1] * len(players)

    def has_room(team: int) -> bool:
        size = state.sizes[team]
        return size < base_size or (size == base_size and oversized < oversized_slots)

    for idx in order:
        pos = players[idx].position
        open_teams = [team for team in range(num_teams) if has_room(team)]
        tier_teams = [
            team for team in open_teams
            if state.position_counts[team][_POSITION_INDEX[pos]] < quotas[pos]
        ]
        candidates = tier_teams or open_teams
        team = min(candidates, key=lambda t: (state.totals[t], state.sizes[t], t))
        if state.sizes[team] == base_size:
            oversized += 1
        state.add(idx, team)
        assignment[idx] = team
    return assignment


def _hill_climb(
    players: Sequence[Player],
    assignment: List[int],
    state: _TeamTotals,
    rng: random.Random,
    max_passes: int,
    max_checks: int | None = None,
) -> Tuple[float, int]:
    """Apply improving swaps until a pass finds none.

    A pass visits every cross-team pair in a fresh random order, or a random
    sample of ``max_checks`` pairs when the roster has more than that.
    """

    current = state.score()
    pairs = [
        (first, second)
        for first in range(len(players))
        for second in range(first + 1, len(players))
    ]
    swaps = 0
    for _ in range(max_passes):
        rng.shuffle(pairs)
        improved = False
        for first, second in pairs[:max_checks]:
            first_team, second_team = assignment[first], assignment[second]
            if first_team == second_team:
                continue
            if players[first] == players[second]:
                continue
            state.swap(first, first_team, second, second_team)
            candidate = state.score()
            if candidate < current - _EPSILON:
                assignment[first], assignment[second] = second_team, first_team
                current = candidate
                swaps += 1
                improved = True
            else:
                state.swap(first, second_team, second, first_team)
        if not improved:
            break
    return current, swaps


def run_attempt(config: AttemptConfig) -> AttemptResult:
    """Run one construct-and-improve trial."""

    start = time.perf_counter()
    rng = random.Random(config.seed)
    state = _TeamTotals(config.players, config.num_teams, config.weights)
    assignment = _construct_partition(config.players, config.num_teams, rng, state)
    score, swaps = _hill_climb(
        config.players,
        assignment,
        state,
        rng,
        config.max_swap_passes,
        config.max_swap_checks,
    )
    return AttemptResult(
        attempt=config.attempt,
        seed=config.seed,
        partition=Partition(tuple(assignment), config.num_teams),
        score=score,
        swaps=swaps,
        elapsed=time.perf_counter() - start,
    )


def _attempt_worker(config: AttemptConfig, queue: mp.Queue) -> None:
    try:
        queue.put(run_attempt(config))
    except Exception as exc:  # pragma: no cover - runs in the child process
        queue.put(AttemptFailure(attempt=config.attempt, error=repr(exc)))


def attempt_seeds(seed: Optional[int], count: int) -> List[int]:
    rng = random.Random(seed) if seed is not None else random.Random()
    return [rng.randint(1, 2 ** 31 - 1) for _ in range(count)]


def _select_best(results: Sequence[AttemptResult], num_players: int) -> Optional[AttemptResult]:
    best: Optional[AttemptResult] = None
    for result in results:
        if not result.partition.is_valid(num_players):
            logger.warning("Attempt %s produced an invalid partition; skipping", result.attempt)
            continue
        if best is None or (result.score, result.attempt) < (best.score, best.attempt):
            best = result
    return best


def _log_attempt(result: AttemptResult, run_start: float) -> None:
    logger.info(
        "Attempt %s completed – score %.4f, %s swaps (seed=%s, attempt %.2fs, total %.2fs)",
        result.attempt,
        result.score,
        result.swaps,
        result.seed,
        result.elapsed,
        time.perf_counter() - run_start,
    )


def _log_failure(failure: AttemptFailure) -> None:
    logger.error("Attempt %s failed – %s; skipping", failure.attempt, failure.error)


def _search_serial(
    configs: Sequence[AttemptConfig],
    deadline: float,
    run_start: float,
) -> Tuple[List[AttemptResult], List[AttemptFailure]]:
    results: List[AttemptResult] = []
    failures: List[AttemptFailure] = []
    for config in configs:
        if (results or failures) and time.perf_counter() >= deadline:
            break
        try:
            result = run_attempt(config)
        except Exception as exc:
            logger.exception("Attempt %s failed", config.attempt)
            failures.append(AttemptFailure(attempt=config.attempt, error=repr(exc)))
            continue
        _log_attempt(result, run_start)
        results.append(result)
    return results, failures


def _search_parallel(
    configs: Sequence[AttemptConfig],
    deadline: float,
    run_start: float,
    workers: int,
    *,
    poll_interval: float = _POLL_INTERVAL,
) -> Tuple[List[AttemptResult], List[AttemptFailure]]:
    ctx = mp.get_context("spawn")
    queue: mp.Queue = ctx.Queue()
    processes: dict[int, mp.Process] = {}
    results: List[AttemptResult] = []
    failures: List[AttemptFailure] = []
    pending = list(configs)

    def start_next() -> None:
        config = pending.pop(0)
        logger.info("Dispatching attempt %s (seed=%s)", config.attempt, config.seed)
        proc = ctx.Process(target=_attempt_worker, args=(config, queue))
        proc.start()
        processes[config.attempt] = proc

    def refill() -> None:
        while pending and len(processes) < workers and time.perf_counter() < deadline:
            start_next()

    try:
        while pending and len(processes) < workers:
            if processes and time.perf_counter() >= deadline:
                break
            start_next()

        while processes:
            try:
                outcome = queue.get(timeout=poll_interval)
            except queue_module.Empty:
                # A worker that exits non-zero without posting was killed or crashed.
                for attempt, proc in list(processes.items()):
                    if not proc.is_alive() and proc.exitcode not in (0, None):
                        processes.pop(attempt)
                        failure = AttemptFailure(
                            attempt=attempt,
                            error=f"worker exited with code {proc.exitcode}",
                        )
                        _log_failure(failure)
                        failures.append(failure)
                refill()
                continue

            proc = processes.pop(outcome.attempt, None)
            if proc is not None:
                proc.join()
            if isinstance(outcome, AttemptFailure):
                _log_failure(outcome)
                failures.append(outcome)
            else:
                _log_attempt(outcome, run_start)
                results.append(outcome)
            refill()
    finally:
        for proc in processes.values():
            if proc.is_alive():
                proc.terminate()
    return results, failures


def search_partition(
    request: BalanceRequest,
    *,
    parallel_jobs: int | None = None,
    settings: BalancerSettings | None = None,
) -> SearchOutcome:
    """Return the fairest partition found within the request's budget.

    ``time_limit`` bounds the whole search and is checked only between
    attempts, so the first attempt always completes and an attempt that has
    started is never interrupted.
    """

    settings = settings or get_settings()
    workers = max(1, parallel_jobs if parallel_jobs is not None else settings.parallel_jobs)
    weights = SearchWeights.from_settings(settings)
    players = tuple(request.players)

    configs = [
        AttemptConfig(
            attempt=attempt,
            seed=seed,
            players=players,
            num_teams=request.num_teams,
            weights=weights,
            max_swap_passes=settings.max_swap_passes,
            max_swap_checks=settings.max_swap_checks,
        )
        for attempt, seed in enumerate(attempt_seeds(request.seed, request.num_attempts))
    ]

    run_start = time.perf_counter()
    deadline = run_start + request.time_limit
    logger.info(
        "Starting partition search – players=%s, teams=%s, attempts=%s, time_limit=%.1fs, workers=%s",
        len(players),
        request.num_teams,
        request.num_attempts,
        request.time_limit,
        workers,
    )

    if workers == 1 or request.num_attempts == 1:
        results, failures = _search_serial(configs, deadline, run_start)
    else:
        results, failures = _search_parallel(configs, deadline, run_start, min(workers, request.num_attempts))

    elapsed = time.perf_counter() - run_start
    attempts_run = len(results) + len(failures)
    timed_out = attempts_run < request.num_attempts
    if timed_out:
        logger.warning(
            "Time limit of %.1fs reached after %s/%s attempts",
            request.time_limit,
            attempts_run,
            request.num_attempts,
        )

    best = _select_best(results, len(players))
    if best is None:
        raise SearchExhaustedError(
            f"none of {attempts_run} attempts produced a valid partition "
            f"({len(failures)} failed)"
        )

    logger.info(
        "Partition search finished – best score %.4f from attempt %s (%s attempts, %.2fs)",
        best.score,
        best.attempt,
        len(results),
        elapsed,
    )
    return SearchOutcome(
        partition=best.partition,
        score=best.score,
        best_attempt=best.attempt,
        attempts_completed=len(results),
        elapsed=elapsed,
        timed_out=timed_out,
    )
