import datetime
from collections import Counter
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from errors import ErrorKind
from matches.models import ConflictKind, Rotation, ScheduleDefaults


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PlayerOut(_FromAttributes):
    id: str
    name: str
    skill_level: Union[str, int, float, None] = None


class TeamPlanOut(_FromAttributes):
    total_players: int
    team_size: int
    team_count: int
    players_per_team: List[int]
    is_valid: bool
    description: str
    error: Optional[ErrorKind] = None


class TeamOut(_FromAttributes):
    id: str
    players: List[PlayerOut]


class ParticipantOut(_FromAttributes):
    player: PlayerOut
    team: str


class MatchTemplateOut(_FromAttributes):
    title: str
    match_type: str
    skill_level: str
    court_id: Optional[str] = None
    date: datetime.date
    time: datetime.time
    duration_minutes: int
    max_players: int
    participants: List[ParticipantOut]
    description: str
    notes: str


class ConflictReasonOut(_FromAttributes):
    kind: ConflictKind
    date: datetime.date
    time: datetime.time
    message: str
    court_id: Optional[str] = None
    player_id: Optional[str] = None
    match_id: Optional[str] = None


class TemplateConflictsOut(_FromAttributes):
    template_index: int
    reasons: List[ConflictReasonOut]


class ProblemOut(_FromAttributes):
    kind: ErrorKind
    message: str


class TeamConfigurationOut(_FromAttributes):
    team_size: int
    team_count: int
    players_per_team: List[int]
    description: str
    is_optimal: bool


class ScheduleIn(BaseModel):
    date: datetime.date
    time: datetime.time
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    court_id: Optional[str] = None
    skill_level: Optional[str] = None
    match_type: Optional[str] = None
    notes: Optional[str] = None
    end_time: Optional[datetime.time] = None
    break_minutes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_time is not None and self.end_time <= self.time:
            raise ValueError("end_time must be later than time")
        return self

    def to_defaults(self, duration_minutes: int, match_type: str) -> ScheduleDefaults:
        return ScheduleDefaults(
            date=self.date,
            time=self.time,
            duration_minutes=self.duration_minutes or duration_minutes,
            court_id=self.court_id,
            skill_level=self.skill_level,
            match_type=self.match_type or match_type,
            notes=self.notes,
            end_time=self.end_time,
            break_minutes=self.break_minutes,
        )


class GenerateMatchesRequest(BaseModel):
    player_ids: Optional[List[str]] = None  # None: every active player
    preferred_team_size: int = Field(ge=2)
    schedule: ScheduleIn
    rotation: Rotation = Rotation.FULL_ROSTER
    number_of_rounds: Optional[int] = Field(default=None, ge=1)
    persist: bool = False

    @field_validator("player_ids")
    @classmethod
    def _unique_players(cls, value):
        if value is not None:
            repeated = [pid for pid, count in Counter(value).items() if count > 1]
            if repeated:
                raise ValueError(f"Players listed more than once: {', '.join(repeated)}")
        return value


class GenerateMatchesResponse(BaseModel):
    team_plan: TeamPlanOut
    teams: List[TeamOut]
    match_templates: List[MatchTemplateOut]
    conflicts: List[TemplateConflictsOut]
    problems: List[ProblemOut]
    created_match_ids: List[str] = []


class ScoreIn(BaseModel):
    score: Any = None


class ScoreOut(BaseModel):
    match_id: str
    score: Optional[dict] = None
    display: Optional[str] = None
    winner: Optional[str] = None
