"""
Shared pytest fixtures for the match generator tests.

Running tests:
    pytest tests/
"""
import datetime
import os
import sys
from types import SimpleNamespace

import pytest

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from errors import BookingConflictError
from matches.models import Court, ScheduleDefaults
from matches.scores import score_to_json, winning_team
from teams.models import Player

MATCH_DAY = datetime.date(2026, 10, 20)


def build_players(count, skill_levels=None, prefix="p"):
    players = []
    for i in range(count):
        skill = skill_levels[i % len(skill_levels)] if skill_levels else None
        players.append(Player(id=f"{prefix}{i + 1}", name=f"Player {i + 1}", skill_level=skill))
    return players


@pytest.fixture
def make_players():
    return build_players


@pytest.fixture
def schedule():
    return ScheduleDefaults(date=MATCH_DAY, time=datetime.time(9, 0), duration_minutes=60)


class FakePlayerDirectory:
    def __init__(self, players):
        self.players = list(players)

    async def list_active_players(self):
        return [p for p in self.players if p.active]

    async def get_players(self, player_ids):
        by_id = {p.id: p for p in self.players}
        return [by_id[i] for i in player_ids if i in by_id], [i for i in player_ids if i not in by_id]


class FakeCourtStore:
    def __init__(self, courts=(), bookings=()):
        self.courts = list(courts)
        self.bookings = list(bookings)

    async def list_courts(self, status=None):
        return [c for c in self.courts if status is None or c.status == status]

    async def list_existing_bookings(self, start, end):
        return [b for b in self.bookings if start <= b.date <= end]


class FakeMatchStore:
    def __init__(self, known_matches=(), fail_with_conflict=False):
        self.created = []
        self.known_matches = set(known_matches)
        self.fail_with_conflict = fail_with_conflict

    async def create_match(self, template):
        if self.fail_with_conflict:
            raise BookingConflictError(f"Court {template.court_id} was booked in the meantime")
        self.created.append(template)
        return f"m{len(self.created)}"

    async def record_score(self, match_id, score):
        if match_id not in self.known_matches:
            return None
        return SimpleNamespace(score=score_to_json(score), winner=winning_team(score))


@pytest.fixture
def stores():
    return SimpleNamespace(
        players=FakePlayerDirectory(build_players(18)),
        courts=FakeCourtStore(courts=[
            Court(id="c1", name="Court 1"),
            Court(id="c2", name="Court 2"),
            Court(id="c3", name="Court 3", status="maintenance"),
        ]),
        matches=FakeMatchStore(known_matches={"m1"}),
    )


@pytest.fixture
def client(stores):
    """Test client with the database-backed stores swapped for in-memory fakes."""
    from fastapi.testclient import TestClient
    from main import app
    from matches.router import get_court_store, get_match_store, get_player_directory

    app.dependency_overrides[get_player_directory] = lambda: stores.players
    app.dependency_overrides[get_court_store] = lambda: stores.courts
    app.dependency_overrides[get_match_store] = lambda: stores.matches
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
