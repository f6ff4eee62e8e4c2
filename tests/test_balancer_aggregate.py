from collections import Counter
from itertools import combinations

import pytest

from teambalancer.balancer import Partition, aggregate_partition, balance_roster
from teambalancer.config import BalancerSettings
from teambalancer.models import BalanceRequest, Player


def _roster() -> tuple[Player, ...]:
    return (
        Player(name="Ana", overall=4.5, position="DEF"),
        Player(name="Ben", overall=3.0, position="MID"),
        Player(name="Caio", overall=2.0, position="ATT"),
        Player(name="Dara", overall=5.0, position="MID"),
        Player(name="Eli", overall=1.0, position="DEF"),
        Player(name="Fay", overall=3.5, position="ATT"),
        Player(name="Gus", overall=2.5, position="MID"),
    )


def _request(num_teams: int = 2) -> BalanceRequest:
    return BalanceRequest(players=_roster(), num_teams=num_teams, time_limit=10.0, num_attempts=3, seed=11)


def test_aggregate_partition_team_statistics():
    request = _request()
    result = aggregate_partition(request, Partition((0, 1, 0, 1, 0, 1, 0), 2))

    first, second = result.teams
    assert first.team_number == 1
    assert [player.name for player in first.players] == ["Ana", "Caio", "Eli", "Gus"]
    assert first.total_rating == pytest.approx(10.0)
    assert first.average_rating == pytest.approx(2.5)
    assert first.position_distribution == {"DEF": 2, "MID": 1, "ATT": 1}
    assert second.team_number == 2
    assert second.total_rating == pytest.approx(11.5)
    assert second.average_rating == pytest.approx(11.5 / 3)
    assert second.position_distribution == {"DEF": 0, "MID": 2, "ATT": 1}
    assert result.overall_mean == pytest.approx(21.5 / 7)
    assert result.max_rating_difference == pytest.approx(11.5 / 3 - 2.5)


def test_max_rating_difference_is_zero_for_equal_averages():
    players = tuple(Player(name=f"P{idx}", overall=3.0, position="MID") for idx in range(4))
    request = BalanceRequest(players=players, num_teams=2, time_limit=1.0, num_attempts=1)
    result = aggregate_partition(request, Partition((0, 0, 1, 1), 2))

    assert result.max_rating_difference == 0.0


@pytest.mark.parametrize("num_teams", [2, 3])
def test_balance_roster_preserves_roster_and_totals(num_teams: int):
    request = _request(num_teams)
    result = balance_roster(request, settings=BalancerSettings())

    assert len(result.teams) == num_teams
    assigned = Counter(player for team in result.teams for player in team.players)
    assert assigned == Counter(request.players)

    roster_total = sum(player.overall for player in request.players)
    assert sum(team.total_rating for team in result.teams) == pytest.approx(roster_total)
    assert result.overall_mean == pytest.approx(roster_total / len(request.players))

    expected_diff = max(
        abs(a.average_rating - b.average_rating) for a, b in combinations(result.teams, 2)
    )
    assert result.max_rating_difference == pytest.approx(expected_diff)
    assert result.max_rating_difference >= 0.0
    for team in result.teams:
        assert set(team.position_distribution) == {"DEF", "MID", "ATT"}
        assert sum(team.position_distribution.values()) == len(team.players)
    assert result.attempts_completed >= 1
