import logging
import string
from typing import List, Optional, Sequence

from errors import ErrorKind, MismatchedInputError
from teams.models import (
    Participant, Player, Team, TeamAssignment, TeamConfiguration, TeamId, TeamPlan,
)

logger = logging.getLogger(__name__)

# Two teams of three is the smallest team match the club plays.
MIN_PLAYERS = 6
MIN_TEAM_SIZE = 3
# Doubles-plus: no playable grouping is larger than this.
MAX_TEAM_SIZE = 6


def _invalid_plan(total_players: int, team_size: int, error: ErrorKind, description: str) -> TeamPlan:
    return TeamPlan(
        total_players=total_players,
        team_size=team_size,
        team_count=0,
        players_per_team=(),
        is_valid=False,
        description=description,
        error=error,
    )


def _teams_of(count: int) -> str:
    return f"{count} team" if count == 1 else f"{count} teams"


def plan_team_sizes(total_players: int, preferred_team_size: int) -> TeamPlan:
    """Work out how many teams to build and how big each one is.

    Every full team gets ``preferred_team_size`` players; a remainder is added to
    the last team as long as that team stays within ``MAX_TEAM_SIZE``. Players
    are never dropped: if the remainder does not fit the plan is invalid.
    """
    if preferred_team_size < 2:
        raise ValueError(f"preferred_team_size must be at least 2, got {preferred_team_size}")
    if total_players < 0:
        raise ValueError(f"total_players must not be negative, got {total_players}")

    if total_players < MIN_PLAYERS:
        return _invalid_plan(
            total_players, preferred_team_size, ErrorKind.INSUFFICIENT_PLAYERS,
            f"Not enough players for team matches (minimum {MIN_PLAYERS} required)",
        )

    full_teams, remainder = divmod(total_players, preferred_team_size)
    if full_teams < 2:
        return _invalid_plan(
            total_players, preferred_team_size, ErrorKind.INFEASIBLE_PLAN,
            f"Not enough players for {preferred_team_size}-player teams",
        )

    if remainder == 0:
        sizes = (preferred_team_size,) * full_teams
        description = f"{full_teams} teams of {preferred_team_size} players each"
    else:
        last_size = preferred_team_size + remainder
        if last_size > MAX_TEAM_SIZE:
            return _invalid_plan(
                total_players, preferred_team_size, ErrorKind.INFEASIBLE_PLAN,
                f"{remainder} extra players would make a team of {last_size}, "
                f"above the {MAX_TEAM_SIZE}-player maximum; "
                f"try a different team size",
            )
        sizes = (preferred_team_size,) * (full_teams - 1) + (last_size,)
        description = (
            f"{_teams_of(full_teams - 1)} of {preferred_team_size} players "
            f"+ 1 team of {last_size} players"
        )

    plan = TeamPlan(
        total_players=total_players,
        team_size=preferred_team_size,
        team_count=len(sizes),
        players_per_team=sizes,
        is_valid=True,
        description=description,
    )
    logger.debug("Planned %d players at size %d: %s", total_players, preferred_team_size, sizes)
    return plan


def team_configurations(total_players: int, preferred_team_size: Optional[int] = None) -> List[TeamConfiguration]:
    """Feasible team layouts to offer when picking a team size.

    Built on ``plan_team_sizes`` so a recommendation always matches the teams
    that are actually generated for it.
    """
    if preferred_team_size is not None:
        sizes = [preferred_team_size]
    else:
        sizes = range(MIN_TEAM_SIZE, min(MAX_TEAM_SIZE, total_players // 2) + 1)

    configurations = []
    for size in sizes:
        plan = plan_team_sizes(total_players, size)
        if not plan.is_valid:
            continue
        configurations.append(TeamConfiguration(
            team_size=plan.team_size,
            team_count=plan.team_count,
            players_per_team=plan.players_per_team,
            description=plan.description,
            is_optimal=len(set(plan.players_per_team)) == 1,
        ))

    configurations.sort(key=lambda c: (not c.is_optimal, c.team_count))
    return configurations


def team_label(index: int) -> TeamId:
    """A, B, ..., Z, AA, AB, ... for a zero-based team index."""
    label = ""
    index += 1
    while index:
        index, rem = divmod(index - 1, 26)
        label = string.ascii_uppercase[rem] + label
    return label


def team_ids(count: int) -> List[TeamId]:
    return [team_label(i) for i in range(count)]


def team_sort_key(team_id: TeamId):
    return (len(team_id), team_id)


def assign_teams(players: Sequence[Player], plan: TeamPlan) -> TeamAssignment:
    """Fill teams in order from the player list, exactly as the plan sizes them."""
    if len(players) != plan.total_players:
        raise MismatchedInputError(
            f"Plan was built for {plan.total_players} players but {len(players)} were given"
        )
    seen = set()
    for player in players:
        if player.id in seen:
            raise MismatchedInputError(f"Player {player.id} appears more than once")
        seen.add(player.id)

    if not plan.is_valid:
        return TeamAssignment(teams=(), is_valid=False)

    teams = []
    start = 0
    for team_id, size in zip(team_ids(plan.team_count), plan.players_per_team):
        teams.append(Team(id=team_id, players=tuple(players[start:start + size])))
        start += size

    return TeamAssignment(teams=tuple(teams), is_valid=True)


def flatten_participants(teams: Sequence[Team]) -> List[Participant]:
    return [Participant(player=p, team=t.id) for t in teams for p in t.players]
