"""Serialize balance results for JSON files and CSV exports."""

from __future__ import annotations

import csv
import json
from io import StringIO

from teambalancer.api.schemas.balance import BalanceResponse
from teambalancer.balancer import BalanceResult


TEAM_CSV_HEADERS = ("team_number", "name", "overall", "position")


def export_teams_to_json(result: BalanceResult) -> str:
    """Return the same JSON body the HTTP API responds with."""

    return json.dumps(BalanceResponse.from_result(result).model_dump(), indent=2)


def export_teams_to_csv(result: BalanceResult) -> str:
    """Return one CSV row per player, grouped by team number."""

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TEAM_CSV_HEADERS)
    for team in result.teams:
        for player in team.players:
            writer.writerow([team.team_number, player.name, f"{player.overall:g}", player.position])
    return buffer.getvalue()
