"""REST API for the team balancing engine."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from teambalancer.api.schemas import BalanceJsonRequest, BalanceResponse
from teambalancer.balancer import balance_roster
from teambalancer.config import BalancerSettings, get_settings
from teambalancer.errors import BalanceError
from teambalancer.ingest import decode_roster_bytes, normalize_request, parse_roster_csv


logger = logging.getLogger("uvicorn.error")


def _http_error(exc: BalanceError) -> HTTPException:
    if exc.status_code >= 500:
        logger.error("Balancing failed: %s", exc.message)
    else:
        logger.info("Rejected balance request (%s): %s", exc.code, exc.message)
    return HTTPException(status_code=exc.status_code, detail=exc.to_detail())


def create_app(settings: BalancerSettings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="teambalancer")
    app.state.settings = settings

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_origins),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    async def run_balance(
        players: Sequence[Any],
        *,
        num_teams: int | None,
        time_limit: float | None,
        num_attempts: int | None,
        seed: int | None,
    ) -> BalanceResponse:
        try:
            request = normalize_request(
                players,
                num_teams=num_teams if num_teams is not None else settings.default_num_teams,
                time_limit=time_limit if time_limit is not None else settings.default_time_limit,
                num_attempts=num_attempts if num_attempts is not None else settings.default_num_attempts,
                seed=seed,
                settings=settings,
            )
            result = await run_in_threadpool(balance_roster, request, settings=settings)
        except BalanceError as exc:
            raise _http_error(exc) from exc
        return BalanceResponse.from_result(result)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/balance/csv", response_model=BalanceResponse)
    async def balance_csv(
        file: UploadFile = File(...),
        num_teams: int | None = Query(None),
        time_limit: float | None = Query(None),
        num_attempts: int | None = Query(None),
        seed: int | None = Query(None),
    ) -> BalanceResponse:
        contents = await file.read()
        try:
            rows = parse_roster_csv(decode_roster_bytes(contents))
        except BalanceError as exc:
            raise _http_error(exc) from exc
        logger.info("Received roster CSV %s with %s rows", file.filename, len(rows))
        return await run_balance(
            rows,
            num_teams=num_teams,
            time_limit=time_limit,
            num_attempts=num_attempts,
            seed=seed,
        )

    @app.post("/balance/json", response_model=BalanceResponse)
    async def balance_json(payload: BalanceJsonRequest) -> BalanceResponse:
        players: list[Mapping[str, Any]] = [player.model_dump() for player in payload.players]
        return await run_balance(
            players,
            num_teams=payload.num_teams,
            time_limit=payload.time_limit,
            num_attempts=payload.num_attempts,
            seed=payload.seed,
        )

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
