"""Pydantic models for API I/O."""

from .balance import (
    BalanceJsonRequest,
    BalanceResponse,
    PlayerPayload,
    PlayerResponse,
    PositionDistributionResponse,
    TeamOutputResponse,
)

__all__ = [
    "BalanceJsonRequest",
    "BalanceResponse",
    "PlayerPayload",
    "PlayerResponse",
    "PositionDistributionResponse",
    "TeamOutputResponse",
]
