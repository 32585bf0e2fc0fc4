"""Tests for team-vs-team pairing generation."""
from itertools import combinations

from matches.functions import generate_pairings
from teams.functions import assign_teams, plan_team_sizes, team_ids
from teams.models import Team
from conftest import build_players


def _teams(count):
    return [Team(id=team_id, players=()) for team_id in team_ids(count)]


def _pairs(pairings):
    return [(p.team_a, p.team_b) for p in pairings]


def test_three_teams_of_three():
    players = build_players(9)
    assignment = assign_teams(players, plan_team_sizes(9, 3))
    assert _pairs(generate_pairings(assignment.teams)) == [("A", "B"), ("A", "C"), ("B", "C")]


def test_two_teams_play_once():
    assert _pairs(generate_pairings(_teams(2))) == [("A", "B")]


def test_fewer_than_two_teams_gives_nothing():
    assert generate_pairings(_teams(1)) == []
    assert generate_pairings([]) == []


def test_round_robin_is_complete():
    for k in range(3, 12):
        pairs = _pairs(generate_pairings(_teams(k)))
        assert len(pairs) == k * (k - 1) // 2
        assert {frozenset(p) for p in pairs} == {frozenset(c) for c in combinations(team_ids(k), 2)}
        assert all(a != b for a, b in pairs)


def test_order_does_not_depend_on_input_order():
    teams = _teams(5)
    assert generate_pairings(list(reversed(teams))) == generate_pairings(teams)


def test_double_letter_teams_sort_after_z():
    pairs = _pairs(generate_pairings(_teams(28)))
    assert pairs[0] == ("A", "B")
    assert ("Z", "AA") in pairs
    assert ("AA", "Z") not in pairs
    assert pairs[-1] == ("AA", "AB")
