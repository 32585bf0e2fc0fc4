import datetime
import logging
from collections import Counter
from dataclasses import replace
from itertools import combinations
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from errors import ErrorKind, Problem
from matches.models import (
    ConflictKind, ConflictReason, Court, ExistingBooking, GenerationResult,
    MatchTemplate, Rotation, ScheduleDefaults, TeamPairing, TemplateConflicts,
)
from teams.functions import assign_teams, flatten_participants, plan_team_sizes, team_sort_key
from teams.models import Player, Team

logger = logging.getLogger(__name__)

# Rosters up to this size are spelled out in the match title
MAX_NAMED_ROSTER = 3
DEFAULT_NOTES = "Generated team match"
# Doubles lineups for rotating rosters
PLAYERS_PER_SIDE = 2
MAX_CONSECUTIVE_MATCHES = 2


def generate_pairings(teams: Sequence[Team]) -> List[TeamPairing]:
    """Every team plays every other team once, in team order.

    Two teams give a single pairing; fewer than two give nothing to play.
    """
    ordered = sorted(teams, key=lambda t: team_sort_key(t.id))
    return [TeamPairing(team_a=a.id, team_b=b.id) for a, b in combinations(ordered, 2)]


def _slot_start(date: datetime.date, time: datetime.time) -> datetime.datetime:
    return datetime.datetime.combine(date, time)


def slots_overlap(
    date_a: datetime.date, time_a: datetime.time, duration_a: Optional[int],
    date_b: datetime.date, time_b: datetime.time, duration_b: Optional[int],
) -> bool:
    if date_a != date_b:
        return False
    start_a = _slot_start(date_a, time_a)
    start_b = _slot_start(date_b, time_b)
    if start_a == start_b:
        return True
    if duration_a is None or duration_b is None:
        return False
    end_a = start_a + datetime.timedelta(minutes=duration_a)
    end_b = start_b + datetime.timedelta(minutes=duration_b)
    return max(start_a, start_b) < min(end_a, end_b)


def check_conflicts(candidate: MatchTemplate, existing: Sequence[ExistingBooking]) -> List[ConflictReason]:
    """Court and player clashes between a candidate match and existing bookings."""
    reasons = []
    for booking in existing:
        if not slots_overlap(
            candidate.date, candidate.time, candidate.duration_minutes,
            booking.date, booking.time, booking.duration_minutes,
        ):
            continue
        slot = f"{booking.time:%H:%M} on {booking.date.isoformat()}"

        if candidate.court_id is not None and booking.court_id == candidate.court_id:
            reasons.append(ConflictReason(
                kind=ConflictKind.COURT,
                date=booking.date,
                time=booking.time,
                court_id=booking.court_id,
                match_id=booking.match_id,
                message=f"Court {booking.court_id} is already booked at {slot}",
            ))

        booked_players = set(booking.player_ids)
        for participant in candidate.participants:
            if participant.player.id in booked_players:
                reasons.append(ConflictReason(
                    kind=ConflictKind.PLAYER,
                    date=booking.date,
                    time=booking.time,
                    player_id=participant.player.id,
                    match_id=booking.match_id,
                    message=f"{participant.player.name} is already playing at {slot}",
                ))
    return reasons


def _match_title(team_a: Team, team_b: Team) -> str:
    if team_a.size <= MAX_NAMED_ROSTER and team_b.size <= MAX_NAMED_ROSTER:
        return f"{team_a.display_name} vs {team_b.display_name}"
    return f"Team {team_a.id} vs Team {team_b.id}"


def common_skill_level(players: Sequence[Player]) -> str:
    """Most frequent skill level among the players, first seen wins a tie."""
    levels = Counter(str(p.skill_level) for p in players if p.skill_level not in (None, ""))
    if not levels:
        return "Mixed"
    return levels.most_common(1)[0][0]


def _record_streaks(streaks: Dict[str, int], playing: Sequence[Player]) -> None:
    playing_ids = {p.id for p in playing}
    for player_id in streaks:
        if player_id not in playing_ids:
            streaks[player_id] = 0
    for player_id in playing_ids:
        streaks[player_id] = streaks.get(player_id, 0) + 1


def _pick_rested(players: Sequence[Player], count: int, streaks: Dict[str, int]) -> Tuple[Player, ...]:
    """Players with the shortest run of consecutive matches, roster order on ties.

    Anyone at ``MAX_CONSECUTIVE_MATCHES`` only plays when the team is short.
    """
    return tuple(sorted(players, key=lambda p: streaks.get(p.id, 0))[:count])


def _lineups(
    team_a: Team,
    team_b: Team,
    rotation: Rotation,
    number_of_rounds: Optional[int],
    streaks: Dict[str, int],
) -> Iterator[Tuple[Team, Team]]:
    if rotation == Rotation.FULL_ROSTER:
        yield team_a, team_b
        return

    per_side = min(PLAYERS_PER_SIDE, team_a.size, team_b.size)
    if rotation == Rotation.HEAD_TO_HEAD:
        for _ in range(number_of_rounds or 1):
            side_a = _pick_rested(team_a.players, per_side, streaks)
            side_b = _pick_rested(team_b.players, per_side, streaks)
            _record_streaks(streaks, side_a + side_b)
            yield Team(team_a.id, side_a), Team(team_b.id, side_b)
        return

    remaining = [
        (pair_a, pair_b)
        for pair_a in combinations(team_a.players, per_side)
        for pair_b in combinations(team_b.players, per_side)
    ]
    limit = len(remaining) if number_of_rounds is None else min(number_of_rounds, len(remaining))
    for _ in range(limit):
        # fewest players at the limit first, then the shortest combined run
        chosen = min(remaining, key=lambda lineup: (
            sum(streaks.get(p.id, 0) >= MAX_CONSECUTIVE_MATCHES for p in lineup[0] + lineup[1]),
            sum(streaks.get(p.id, 0) for p in lineup[0] + lineup[1]),
        ))
        remaining.remove(chosen)
        _record_streaks(streaks, chosen[0] + chosen[1])
        yield Team(team_a.id, chosen[0]), Team(team_b.id, chosen[1])


def assemble_match_templates(
    pairings: Sequence[TeamPairing],
    teams: Sequence[Team],
    schedule: ScheduleDefaults,
    rotation: Rotation = Rotation.FULL_ROSTER,
    number_of_rounds: Optional[int] = None,
    **overrides,
) -> List[MatchTemplate]:
    """Turn team pairings into match templates ready for the match store.

    With the default ``Rotation.FULL_ROSTER`` every pairing is one match
    between the complete teams. The other rotations split each pairing into
    doubles matches, ``number_of_rounds`` per pairing for head-to-head (one
    if not given) and at most that many for all-combinations (every
    combination if not given). Consecutive-match runs are tracked across all
    pairings, so rested players are picked first.

    ``overrides`` replace fields of ``schedule`` for this call only.
    """
    if number_of_rounds is not None and number_of_rounds < 1:
        raise ValueError(f"number_of_rounds must be at least 1, got {number_of_rounds}")
    if overrides:
        schedule = replace(schedule, **overrides)
    rosters = {team.id: team for team in teams}
    round_robin = len(pairings) > 1
    streaks: Dict[str, int] = {}

    templates = []
    for pairing in pairings:
        try:
            team_a, team_b = rosters[pairing.team_a], rosters[pairing.team_b]
        except KeyError as exc:
            raise ValueError(f"Pairing refers to unknown team {exc.args[0]}") from None

        if round_robin:
            description = f"Round Robin: Team {team_a.id} vs Team {team_b.id}"
        else:
            description = f"Team vs Team: {team_a.id} vs {team_b.id}"

        lineups = _lineups(team_a, team_b, rotation, number_of_rounds, streaks)
        for number, (side_a, side_b) in enumerate(lineups, 1):
            title = _match_title(side_a, side_b)
            match_description = description
            if rotation != Rotation.FULL_ROSTER:
                title = f"{title} - Match {number}"
                match_description = f"{description} - Match {number} ({rotation.value})"

            templates.append(MatchTemplate(
                title=title,
                match_type=schedule.match_type,
                skill_level=schedule.skill_level or common_skill_level(side_a.players + side_b.players),
                court_id=schedule.court_id,
                date=schedule.date,
                time=schedule.time,
                duration_minutes=schedule.duration_minutes,
                max_players=side_a.size + side_b.size,
                participants=tuple(flatten_participants([side_a, side_b])),
                description=match_description,
                notes=schedule.notes or DEFAULT_NOTES,
            ))
    return templates


def generate_time_slots(
    start: datetime.time,
    end: datetime.time,
    duration_minutes: int,
    break_minutes: int = 0,
) -> List[datetime.time]:
    step = duration_minutes + break_minutes
    if step <= 0:
        raise ValueError("Match duration plus break must be positive")
    day = datetime.date(2000, 1, 1)
    current = _slot_start(day, start)
    stop = _slot_start(day, end)
    slots = []
    while current < stop:
        slots.append(current.time())
        current += datetime.timedelta(minutes=step)
    return slots


def _placements(
    template: MatchTemplate,
    time_slots: Sequence[datetime.time],
    court_ids: Sequence[str],
) -> Iterator[MatchTemplate]:
    for time in time_slots or [template.time]:
        for court_id in court_ids or [template.court_id]:
            yield replace(template, time=time, court_id=court_id)
    yield template


def schedule_templates(
    templates: Sequence[MatchTemplate],
    existing: Sequence[ExistingBooking],
    time_slots: Sequence[datetime.time] = (),
    court_ids: Sequence[str] = (),
) -> Tuple[List[MatchTemplate], List[TemplateConflicts]]:
    """Place templates one by one without double-booking players or courts.

    Each template is checked against the existing bookings plus every template
    already accepted in this batch. With a slot grid or court list the first
    free (slot, court) is taken, slot by slot. A template that fits nowhere
    keeps its own slot and is reported; all conflicts come back in one pass.
    """
    booked = list(existing)
    placed = []
    conflicts = []
    for index, template in enumerate(templates):
        chosen = next(
            (c for c in _placements(template, time_slots, court_ids) if not check_conflicts(c, booked)),
            None,
        )
        if chosen is None:
            reasons = check_conflicts(template, booked)
            conflicts.append(TemplateConflicts(template_index=index, reasons=tuple(reasons)))
            placed.append(template)
            continue
        booked.append(chosen.as_booking())
        placed.append(chosen)
    return placed, conflicts


def generate_matches(
    players: Sequence[Player],
    preferred_team_size: int,
    schedule: ScheduleDefaults,
    existing: Sequence[ExistingBooking] = (),
    courts: Sequence[Court] = (),
    rotation: Rotation = Rotation.FULL_ROSTER,
    number_of_rounds: Optional[int] = None,
) -> GenerationResult:
    """Players and a preferred team size in, teams and conflict-checked match templates out."""
    plan = plan_team_sizes(len(players), preferred_team_size)
    if not plan.is_valid:
        logger.warning("No teams for %d players at size %d: %s",
                       len(players), preferred_team_size, plan.description)
        return GenerationResult(team_plan=plan, problems=(Problem(plan.error, plan.description),))

    assignment = assign_teams(players, plan)
    pairings = generate_pairings(assignment.teams)
    templates = assemble_match_templates(pairings, assignment.teams, schedule, rotation, number_of_rounds)

    time_slots = []
    court_ids = []
    if schedule.end_time is not None:
        time_slots = generate_time_slots(
            schedule.time, schedule.end_time, schedule.duration_minutes, schedule.break_minutes,
        )
        court_ids = [court.id for court in courts if court.bookable]
    placed, conflicts = schedule_templates(templates, existing, time_slots, court_ids)

    problems = tuple(
        Problem(
            ErrorKind.SCHEDULE_CONFLICT,
            f"{placed[c.template_index].title}: " + "; ".join(r.message for r in c.reasons),
        )
        for c in conflicts
    )
    if conflicts:
        logger.warning("%d of %d generated matches conflict with existing bookings",
                       len(conflicts), len(placed))
    logger.info("Generated %d teams and %d matches for %d players",
                plan.team_count, len(placed), len(players))

    return GenerationResult(
        team_plan=plan,
        teams=assignment.teams,
        match_templates=tuple(placed),
        conflicts=tuple(conflicts),
        problems=problems,
    )
