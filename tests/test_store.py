"""Tests for the court re-check the match store runs before inserting."""
import asyncio
import datetime
from types import SimpleNamespace

import pytest

from errors import BookingConflictError
from matches.functions import assemble_match_templates, generate_pairings
from matches.store import MatchStore
from teams.functions import assign_teams, plan_team_sizes
from conftest import MATCH_DAY, build_players


class FakeSession:
    """Returns the same court bookings for every query and records inserts."""

    def __init__(self, booked=()):
        self.booked = list(booked)
        self.added = []

    async def scalars(self, query):
        return list(self.booked)

    def add(self, row):
        self.added.append(row)

    def add_all(self, rows):
        self.added.extend(rows)

    async def flush(self):
        pass


def _booked(hour, minute=0, duration=60):
    return SimpleNamespace(date=MATCH_DAY, time=datetime.time(hour, minute), duration_minutes=duration)


@pytest.fixture
def template(schedule):
    teams = assign_teams(build_players(6), plan_team_sizes(6, 3)).teams
    [template] = assemble_match_templates(
        generate_pairings(teams), teams, schedule, court_id="c1", time=datetime.time(9, 30),
    )
    return template


def test_overlapping_booking_on_the_court_is_refused(template):
    session = FakeSession([_booked(9)])
    with pytest.raises(BookingConflictError) as exc_info:
        asyncio.run(MatchStore(session).create_match(template))
    assert exc_info.value.court_id == "c1"
    assert session.added == []


def test_back_to_back_booking_is_accepted(template):
    session = FakeSession([_booked(8, 30)])
    match_id = asyncio.run(MatchStore(session).create_match(template))
    assert session.added[0].id == match_id
    assert len(session.added) == 1 + len(template.participants)


def test_booking_without_duration_only_blocks_its_start(template):
    session = FakeSession([_booked(9, duration=None)])
    asyncio.run(MatchStore(session).create_match(template))
    assert len(session.added) == 7
