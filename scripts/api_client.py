"""Lightweight REST client for the teambalancer API.

Needs httpx: pip install "teambalancer[client]".
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def _load_players(path: Path) -> list[dict]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid roster JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("players", [])
    if not isinstance(data, list):
        raise SystemExit("roster JSON must be a list of players or an object with a 'players' list")
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the teambalancer REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("roster", type=Path, help="Roster CSV, or JSON list of players with --as-json")
    parser.add_argument("--as-json", action="store_true", help="Send the roster to /balance/json")
    parser.add_argument("--teams", type=int, default=2, help="Number of teams to request")
    parser.add_argument("--time-limit", type=int, default=30, help="Search budget in seconds")
    parser.add_argument("--attempts", type=int, default=5, help="Maximum randomized restarts")
    args = parser.parse_args()

    params = {
        "num_teams": args.teams,
        "time_limit": args.time_limit,
        "num_attempts": args.attempts,
    }

    with httpx.Client(base_url=args.base_url, timeout=args.time_limit + 30) as client:
        if args.as_json:
            body = {"players": _load_players(args.roster), **params}
            resp = client.post("/balance/json", json=body)
        else:
            files = {"file": (args.roster.name, args.roster.read_bytes(), "text/csv")}
            resp = client.post("/balance/csv", files=files, params=params)

    if resp.is_error:
        raise SystemExit(resp.text or "Failed to balance teams. Please try again.")

    payload = resp.json()
    for team in payload["teams"]:
        names = ", ".join(player["name"] for player in team["players"])
        print(f"Team {team['team_number']} (avg {team['average_rating']:.2f}): {names}")
    print(json.dumps({key: payload[key] for key in ("overall_mean", "max_rating_difference")}, indent=2))


if __name__ == "__main__":
    main()
