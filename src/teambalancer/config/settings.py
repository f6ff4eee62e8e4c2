"""Runtime limits and search tuning for the balancing engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Tuple


logger = logging.getLogger(__name__)

_ENV_PREFIX = "TEAMBALANCER_"


@dataclass(frozen=True)
class BalancerSettings:
    min_teams: int = 2
    max_teams: int = 10
    min_players: int = 4
    default_num_teams: int = 2
    default_time_limit: float = 30.0
    default_num_attempts: int = 5
    max_time_limit: float = 300.0
    max_num_attempts: int = 1000
    rating_weight: float = 1.0
    position_weight: float = 0.25
    max_swap_passes: int = 50
    max_swap_checks: int = 20000
    parallel_jobs: int = 1
    cors_origins: Tuple[str, ...] = ()
    host: str = "127.0.0.1"
    port: int = 8000


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s%s: %s; using default %.2f", _ENV_PREFIX, name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(_ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s%s: %s; using default %d", _ENV_PREFIX, name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_list(name: str) -> Tuple[str, ...]:
    raw = os.getenv(_ENV_PREFIX + name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def get_settings() -> BalancerSettings:
    """Build settings from defaults overridden by ``TEAMBALANCER_*`` env vars."""

    defaults = BalancerSettings()
    max_time_limit = _env_float("MAX_TIME_LIMIT", defaults.max_time_limit, clamp_min=0.001)
    max_attempts = _env_int("MAX_ATTEMPTS", defaults.max_num_attempts, min_value=1)
    return BalancerSettings(
        default_time_limit=_env_float(
            "TIME_LIMIT", defaults.default_time_limit, clamp_min=0.001, clamp_max=max_time_limit
        ),
        default_num_attempts=min(max_attempts, _env_int("NUM_ATTEMPTS", defaults.default_num_attempts, min_value=1)),
        max_time_limit=max_time_limit,
        max_num_attempts=max_attempts,
        rating_weight=_env_float("RATING_WEIGHT", defaults.rating_weight, clamp_min=0.0),
        position_weight=_env_float("POSITION_WEIGHT", defaults.position_weight, clamp_min=0.0),
        max_swap_passes=_env_int("MAX_SWAP_PASSES", defaults.max_swap_passes, min_value=0),
        max_swap_checks=_env_int("MAX_SWAP_CHECKS", defaults.max_swap_checks, min_value=1),
        parallel_jobs=_env_int("PARALLEL_JOBS", defaults.parallel_jobs, min_value=1),
        cors_origins=_env_list("CORS_ORIGINS"),
        host=os.getenv(_ENV_PREFIX + "HOST", defaults.host),
        port=_env_int("PORT", defaults.port, min_value=1),
    )
