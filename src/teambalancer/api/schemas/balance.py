from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from teambalancer.balancer import BalanceResult


class PlayerPayload(BaseModel):
    name: str
    overall: float
    position: str


class BalanceJsonRequest(BaseModel):
    players: List[PlayerPayload] = Field(default_factory=list)
    num_teams: int | None = None
    time_limit: float | None = None
    num_attempts: int | None = None
    seed: int | None = None


class PlayerResponse(BaseModel):
    name: str
    overall: float
    position: str


class PositionDistributionResponse(BaseModel):
    DEF: int = 0
    MID: int = 0
    ATT: int = 0


class TeamOutputResponse(BaseModel):
    team_number: int
    players: List[PlayerResponse]
    average_rating: float
    position_distribution: PositionDistributionResponse
    total_rating: float


class BalanceResponse(BaseModel):
    teams: List[TeamOutputResponse]
    overall_mean: float
    max_rating_difference: float

    @classmethod
    def from_result(cls, result: BalanceResult) -> "BalanceResponse":
        return cls(
            teams=[
                TeamOutputResponse(
                    team_number=team.team_number,
                    players=[
                        PlayerResponse(name=player.name, overall=player.overall, position=player.position)
                        for player in team.players
                    ],
                    average_rating=team.average_rating,
                    position_distribution=PositionDistributionResponse(**team.position_distribution),
                    total_rating=team.total_rating,
                )
                for team in result.teams
            ],
            overall_mean=result.overall_mean,
            max_rating_difference=result.max_rating_difference,
        )
