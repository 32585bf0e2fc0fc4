"""Tests for match template assembly, slot scheduling and the full generation flow."""
import datetime
from dataclasses import replace

import pytest

from errors import ErrorKind
from matches.functions import (
    assemble_match_templates, common_skill_level, generate_matches, generate_pairings,
    generate_time_slots, schedule_templates,
)
from matches.models import ConflictKind, Court, ExistingBooking, TeamPairing
from teams.functions import assign_teams, plan_team_sizes
from conftest import MATCH_DAY, build_players


def _teams(total, size, **kwargs):
    players = build_players(total, **kwargs)
    return assign_teams(players, plan_team_sizes(total, size)).teams


class TestAssembleMatchTemplates:

    def test_small_rosters_are_named_in_title(self, schedule):
        teams = _teams(6, 3)
        [template] = assemble_match_templates(generate_pairings(teams), teams, schedule)
        assert template.title == "Player 1, Player 2, Player 3 vs Player 4, Player 5, Player 6"
        assert template.max_players == 6
        assert template.description == "Team vs Team: A vs B"
        assert [p.team for p in template.participants] == ["A"] * 3 + ["B"] * 3
        assert template.date == MATCH_DAY
        assert template.time == datetime.time(9, 0)
        assert template.duration_minutes == 60
        assert template.notes == "Generated team match"

    def test_large_rosters_use_team_labels(self, schedule):
        teams = _teams(10, 4)
        [template] = assemble_match_templates(generate_pairings(teams), teams, schedule)
        assert template.title == "Team A vs Team B"
        assert template.max_players == 10
        assert len(template.participants) == 10

    def test_round_robin_descriptions(self, schedule):
        teams = _teams(9, 3)
        templates = assemble_match_templates(generate_pairings(teams), teams, schedule)
        assert [t.description for t in templates] == [
            "Round Robin: Team A vs Team B",
            "Round Robin: Team A vs Team C",
            "Round Robin: Team B vs Team C",
        ]
        assert templates[1].player_ids == ("p1", "p2", "p3", "p7", "p8", "p9")
        assert templates[1].teams == ("A", "C")

    def test_overrides_apply_to_this_call_only(self, schedule):
        teams = _teams(6, 3)
        pairings = generate_pairings(teams)
        [template] = assemble_match_templates(pairings, teams, schedule, court_id="c2", match_type="Tournament")
        assert template.court_id == "c2"
        assert template.match_type == "Tournament"
        assert schedule.court_id is None
        [plain] = assemble_match_templates(pairings, teams, schedule)
        assert plain.court_id is None
        assert plain.match_type == "Doubles"

    def test_skill_level_from_players(self, schedule):
        teams = _teams(6, 3, skill_levels=["Advanced", "Intermediate", "Advanced"])
        [template] = assemble_match_templates(generate_pairings(teams), teams, schedule)
        assert template.skill_level == "Advanced"

    def test_schedule_skill_level_wins(self, schedule):
        teams = _teams(6, 3, skill_levels=["Advanced"])
        [template] = assemble_match_templates(generate_pairings(teams), teams, schedule, skill_level="Mixed")
        assert template.skill_level == "Mixed"

    def test_common_skill_level(self):
        assert common_skill_level(build_players(4)) == "Mixed"
        assert common_skill_level(build_players(4, skill_levels=[3.5, 4.0])) == "3.5"

    def test_unknown_team_in_pairing(self, schedule):
        teams = _teams(6, 3)
        with pytest.raises(ValueError):
            assemble_match_templates([TeamPairing("A", "Q")], teams, schedule)


class TestTimeSlots:

    def test_hourly_slots(self):
        slots = generate_time_slots(datetime.time(9, 0), datetime.time(12, 0), 60)
        assert slots == [datetime.time(9, 0), datetime.time(10, 0), datetime.time(11, 0)]

    def test_breaks_between_matches(self):
        slots = generate_time_slots(datetime.time(9, 0), datetime.time(12, 0), 60, 15)
        assert slots == [datetime.time(9, 0), datetime.time(10, 15), datetime.time(11, 30)]

    def test_zero_length_step_rejected(self):
        with pytest.raises(ValueError):
            generate_time_slots(datetime.time(9, 0), datetime.time(12, 0), 0)


class TestScheduleTemplates:

    def _round_robin(self, schedule):
        teams = _teams(9, 3)
        return assemble_match_templates(generate_pairings(teams), teams, schedule)

    def test_batch_does_not_double_book_players(self, schedule):
        placed, conflicts = schedule_templates(self._round_robin(schedule), [])
        assert len(placed) == 3
        # every later pairing shares a team with the first one in the same slot
        assert [c.template_index for c in conflicts] == [1, 2]
        assert all(r.kind == ConflictKind.PLAYER for c in conflicts for r in c.reasons)

    def test_spreads_over_slots_and_courts(self, schedule):
        slots = [datetime.time(9, 0), datetime.time(10, 0), datetime.time(11, 0)]
        placed, conflicts = schedule_templates(self._round_robin(schedule), [], slots, ["c1", "c2"])
        assert conflicts == []
        assert [(t.time.hour, t.court_id) for t in placed] == [(9, "c1"), (10, "c1"), (11, "c1")]

    def test_avoids_existing_bookings(self, schedule):
        existing = [ExistingBooking(date=MATCH_DAY, time=datetime.time(9, 0), court_id="c1")]
        slots = [datetime.time(9, 0), datetime.time(10, 0)]
        placed, conflicts = schedule_templates(self._round_robin(schedule)[:1], existing, slots, ["c1", "c2"])
        assert conflicts == []
        assert (placed[0].time, placed[0].court_id) == (datetime.time(9, 0), "c2")

    def test_unplaceable_template_keeps_its_slot(self, schedule):
        templates = self._round_robin(schedule)
        existing = [ExistingBooking(date=MATCH_DAY, time=datetime.time(9, 0), player_ids=("p1",))]
        placed, conflicts = schedule_templates(templates[:1], existing)
        assert placed == templates[:1]
        assert len(conflicts) == 1
        assert conflicts[0].reasons[0].player_id == "p1"


class TestGenerateMatches:

    def test_insufficient_players(self, schedule):
        result = generate_matches(build_players(5), 3, schedule)
        assert not result.team_plan.is_valid
        assert result.teams == ()
        assert result.match_templates == ()
        assert [p.kind for p in result.problems] == [ErrorKind.INSUFFICIENT_PLAYERS]

    def test_infeasible_plan(self, schedule):
        result = generate_matches(build_players(11), 4, schedule)
        assert [p.kind for p in result.problems] == [ErrorKind.INFEASIBLE_PLAN]
        assert result.problems[0].message == result.team_plan.description

    def test_same_slot_conflicts_reported_in_one_pass(self, schedule):
        result = generate_matches(build_players(9), 3, schedule)
        assert len(result.match_templates) == 3
        assert result.conflicting_indexes == {1, 2}
        assert [p.kind for p in result.problems] == [ErrorKind.SCHEDULE_CONFLICT] * 2

    def test_slot_grid_uses_bookable_courts_only(self, schedule):
        courts = [Court(id="c1", name="Court 1"), Court(id="c2", name="Court 2", status="maintenance")]
        result = generate_matches(
            build_players(9), 3, replace(schedule, end_time=datetime.time(12, 0)), courts=courts,
        )
        assert result.conflicts == ()
        assert {t.court_id for t in result.match_templates} == {"c1"}
        assert [t.time.hour for t in result.match_templates] == [9, 10, 11]

    def test_every_player_lands_in_one_team(self, schedule):
        players = build_players(18)
        result = generate_matches(players, 3, schedule)
        assert result.team_plan.team_count == 6
        assigned = [p.id for t in result.teams for p in t.players]
        assert sorted(assigned) == sorted(p.id for p in players)
        assert len(set(assigned)) == len(assigned)
        assert len(result.match_templates) == 15

    def test_repeatable(self, schedule):
        players = build_players(14)
        assert generate_matches(players, 4, schedule) == generate_matches(players, 4, schedule)
