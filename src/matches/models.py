import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from errors import Problem
from teams.models import Participant, Team, TeamId, TeamPlan


@dataclass(frozen=True)
class TeamPairing:
    team_a: TeamId
    team_b: TeamId


class Rotation(str, Enum):
    """Who takes the court when two teams meet."""
    FULL_ROSTER = "full-roster"  # one match with both complete teams
    HEAD_TO_HEAD = "head-to-head"  # rounds of doubles, rested players first
    ALL_COMBINATIONS = "all-combinations"  # every pair of A against every pair of B


@dataclass(frozen=True)
class ScheduleDefaults:
    date: datetime.date
    time: datetime.time
    duration_minutes: int = 90
    court_id: Optional[str] = None
    skill_level: Optional[str] = None  # None: derive from the players
    match_type: str = "Doubles"
    notes: Optional[str] = None
    # Set together with a court list to spread matches over a slot grid
    end_time: Optional[datetime.time] = None
    break_minutes: int = 0


@dataclass(frozen=True)
class ExistingBooking:
    date: datetime.date
    time: datetime.time
    court_id: Optional[str] = None
    player_ids: Tuple[str, ...] = ()
    duration_minutes: Optional[int] = None
    match_id: Optional[str] = None


@dataclass(frozen=True)
class MatchTemplate:
    title: str
    match_type: str
    skill_level: str
    court_id: Optional[str]
    date: datetime.date
    time: datetime.time
    duration_minutes: int
    max_players: int
    participants: Tuple[Participant, ...]
    description: str
    notes: str

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(p.player.id for p in self.participants)

    @property
    def teams(self) -> Tuple[TeamId, ...]:
        return tuple(dict.fromkeys(p.team for p in self.participants))

    def as_booking(self) -> ExistingBooking:
        return ExistingBooking(
            date=self.date,
            time=self.time,
            court_id=self.court_id,
            player_ids=self.player_ids,
            duration_minutes=self.duration_minutes,
        )


class ConflictKind(str, Enum):
    COURT = "court"
    PLAYER = "player"


@dataclass(frozen=True)
class ConflictReason:
    kind: ConflictKind
    date: datetime.date
    time: datetime.time
    message: str
    court_id: Optional[str] = None
    player_id: Optional[str] = None
    match_id: Optional[str] = None


@dataclass(frozen=True)
class TemplateConflicts:
    template_index: int
    reasons: Tuple[ConflictReason, ...]


@dataclass(frozen=True)
class Court:
    id: str
    name: str
    type: str = "outdoor"
    status: str = "available"

    @property
    def bookable(self) -> bool:
        return self.status == "available"


@dataclass(frozen=True)
class GenerationResult:
    team_plan: TeamPlan
    teams: Tuple[Team, ...] = ()
    match_templates: Tuple[MatchTemplate, ...] = ()
    conflicts: Tuple[TemplateConflicts, ...] = ()
    problems: Tuple[Problem, ...] = ()

    @property
    def conflicting_indexes(self):
        return {c.template_index for c in self.conflicts}
