"""Canonical player model shared across ingestion, search and API layers."""

from __future__ import annotations

from typing import Literal, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


PositionCode = Literal["DEF", "MID", "ATT"]

POSITIONS: Tuple[str, ...] = ("DEF", "MID", "ATT")

MIN_RATING = 0.0
MAX_RATING = 5.0


class Player(BaseModel):
    """Normalized roster entry. Equal fields mean equal players; no identity beyond that."""

    name: str = Field(..., min_length=1)
    overall: float = Field(..., ge=MIN_RATING, le=MAX_RATING)
    position: PositionCode

    model_config = ConfigDict(frozen=True)
