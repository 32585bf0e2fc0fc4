from dataclasses import dataclass
from typing import Optional, Tuple, Union

from errors import ErrorKind

TeamId = str
SkillLevel = Union[str, int, float, None]


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    skill_level: SkillLevel = None
    active: bool = True


@dataclass(frozen=True)
class TeamPlan:
    total_players: int
    team_size: int
    team_count: int
    players_per_team: Tuple[int, ...]
    is_valid: bool
    description: str
    error: Optional[ErrorKind] = None


@dataclass(frozen=True)
class Team:
    id: TeamId
    players: Tuple[Player, ...]

    @property
    def size(self) -> int:
        return len(self.players)

    @property
    def display_name(self) -> str:
        return ", ".join(p.name for p in self.players)


@dataclass(frozen=True)
class TeamAssignment:
    teams: Tuple[Team, ...]
    is_valid: bool


@dataclass(frozen=True)
class Participant:
    player: Player
    team: TeamId


@dataclass(frozen=True)
class TeamConfiguration:
    team_size: int
    team_count: int
    players_per_team: Tuple[int, ...]
    description: str
    is_optimal: bool  # perfect division, every team the same size
