import json

from teambalancer.balancer import Partition, aggregate_partition
from teambalancer.export import TEAM_CSV_HEADERS, export_teams_to_csv, export_teams_to_json
from teambalancer.models import BalanceRequest, Player


def _result():
    players = (
        Player(name="Ana", overall=4.5, position="DEF"),
        Player(name="Ben", overall=3.0, position="MID"),
        Player(name="Caio", overall=2.0, position="ATT"),
        Player(name="Dara", overall=5.0, position="MID"),
    )
    request = BalanceRequest(players=players, num_teams=2, time_limit=1.0, num_attempts=1)
    return aggregate_partition(request, Partition((0, 1, 1, 0), 2))


def test_export_teams_to_csv_rows():
    lines = export_teams_to_csv(_result()).splitlines()

    assert lines[0] == ",".join(TEAM_CSV_HEADERS)
    assert lines[1:] == [
        "1,Ana,4.5,DEF",
        "1,Dara,5,MID",
        "2,Ben,3,MID",
        "2,Caio,2,ATT",
    ]


def test_export_teams_to_json_matches_api_shape():
    payload = json.loads(export_teams_to_json(_result()))

    assert set(payload) == {"teams", "overall_mean", "max_rating_difference"}
    team = payload["teams"][0]
    assert set(team) == {"team_number", "players", "average_rating", "position_distribution", "total_rating"}
    assert team["position_distribution"] == {"DEF": 1, "MID": 1, "ATT": 0}
    assert payload["max_rating_difference"] == 2.25
