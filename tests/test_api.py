import pytest
from httpx import ASGITransport, AsyncClient

from teambalancer.api import create_app
from teambalancer.config import BalancerSettings


@pytest.fixture(scope="module")
async def client():
    app = create_app(BalancerSettings())
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


def _sample_roster() -> str:
    return """name,overall,position
Ana,5,MID
Ben,4,MID
Caio,4,MID
Dara,3,MID
Eli,3,MID
Fay,2,MID
Gus,2,MID
Hal,1,MID
"""


def _sample_players() -> list[dict]:
    return [
        {"name": "Ana", "overall": 3, "position": "DEF"},
        {"name": "Ben", "overall": 3, "position": "DEF"},
        {"name": "Caio", "overall": 4, "position": "MID"},
        {"name": "Dara", "overall": 4, "position": "ATT"},
    ]


def _params(**overrides) -> dict:
    params = {"num_teams": 2, "time_limit": 30, "num_attempts": 5, "seed": 1}
    params.update(overrides)
    return params


@pytest.mark.anyio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.anyio
async def test_balance_csv_endpoint(client: AsyncClient):
    files = {"file": ("roster.csv", _sample_roster(), "text/csv")}
    resp = await client.post("/balance/csv", files=files, params=_params())
    assert resp.status_code == 200
    payload = resp.json()
    assert set(payload) == {"teams", "overall_mean", "max_rating_difference"}
    assert len(payload["teams"]) == 2
    assert [team["team_number"] for team in payload["teams"]] == [1, 2]
    assert [team["total_rating"] for team in payload["teams"]] == [pytest.approx(12.0), pytest.approx(12.0)]
    assert payload["overall_mean"] == pytest.approx(3.0)
    assert payload["max_rating_difference"] == pytest.approx(0.0)
    names = sorted(player["name"] for team in payload["teams"] for player in team["players"])
    assert names == ["Ana", "Ben", "Caio", "Dara", "Eli", "Fay", "Gus", "Hal"]
    assert payload["teams"][0]["position_distribution"] == {"DEF": 0, "MID": 4, "ATT": 0}


@pytest.mark.anyio
async def test_balance_csv_uses_defaults_without_query(client: AsyncClient):
    files = {"file": ("roster.csv", _sample_roster(), "text/csv")}
    resp = await client.post("/balance/csv", files=files)
    assert resp.status_code == 200
    assert len(resp.json()["teams"]) == 2


@pytest.mark.anyio
async def test_balance_json_endpoint(client: AsyncClient):
    body = {"players": _sample_players(), **_params()}
    resp = await client.post("/balance/json", json=body)
    assert resp.status_code == 200
    payload = resp.json()
    for team in payload["teams"]:
        assert team["position_distribution"]["DEF"] == 1
        assert set(team) == {"team_number", "players", "average_rating", "position_distribution", "total_rating"}
        assert set(team["players"][0]) == {"name", "overall", "position"}
    assert payload["overall_mean"] == pytest.approx(3.5)


@pytest.mark.anyio
async def test_balance_json_one_player_per_team(client: AsyncClient):
    body = {"players": _sample_players(), **_params(num_teams=4)}
    resp = await client.post("/balance/json", json=body)
    assert resp.status_code == 200
    assert [len(team["players"]) for team in resp.json()["teams"]] == [1, 1, 1, 1]


@pytest.mark.anyio
async def test_balance_json_invalid_position(client: AsyncClient):
    players = _sample_players()
    players[0]["position"] = "def"
    resp = await client.post("/balance/json", json={"players": players, **_params()})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["error"] == "validation_error"
    assert "position" in detail["message"]


@pytest.mark.anyio
async def test_balance_csv_rating_out_of_range(client: AsyncClient):
    roster = _sample_roster().replace("Hal,1,MID", "Hal,6,MID")
    files = {"file": ("roster.csv", roster, "text/csv")}
    resp = await client.post("/balance/csv", files=files, params=_params())
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["error"] == "validation_error"
    assert "line 9" in detail["message"]


@pytest.mark.anyio
async def test_balance_csv_missing_column(client: AsyncClient):
    files = {"file": ("roster.csv", "name,overall\nAna,3\n", "text/csv")}
    resp = await client.post("/balance/csv", files=files, params=_params())
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "validation_error"


@pytest.mark.anyio
async def test_balance_rejects_too_many_teams(client: AsyncClient):
    body = {"players": _sample_players(), **_params(num_teams=11)}
    resp = await client.post("/balance/json", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "invalid_parameter"


@pytest.mark.anyio
async def test_balance_rejects_more_teams_than_players(client: AsyncClient):
    body = {"players": _sample_players(), **_params(num_teams=5)}
    resp = await client.post("/balance/json", json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "insufficient_players"


@pytest.mark.anyio
async def test_balance_json_rejects_non_numeric_rating(client: AsyncClient):
    players = _sample_players()
    players[0]["overall"] = "great"
    resp = await client.post("/balance/json", json={"players": players, **_params()})
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_cors_headers_when_origins_configured():
    app = create_app(BalancerSettings(cors_origins=("http://localhost:3000",)))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as cors_client:
        resp = await cors_client.options(
            "/balance/json",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
