import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import CourtORM, MatchORM, MatchParticipantORM, PlayerORM, generate_id
from errors import BookingConflictError
from matches.functions import slots_overlap
from matches.models import Court, ExistingBooking, MatchTemplate
from matches.scores import NotRecorded, Score, score_to_json, winning_team
from teams.functions import team_sort_key
from teams.models import Player

logger = logging.getLogger(__name__)


def _orm_to_player(row: PlayerORM) -> Player:
    return Player(
        id=row.id,
        name=f"{row.first_name} {row.last_name}".strip(),
        skill_level=row.skill_level,
        active=row.is_active,
    )


def _orm_to_booking(row: MatchORM) -> ExistingBooking:
    return ExistingBooking(
        date=row.date,
        time=row.time,
        court_id=row.court_id,
        player_ids=tuple(p.player_id for p in row.participants if p.status != "cancelled"),
        duration_minutes=row.duration_minutes,
        match_id=row.id,
    )


class PlayerDirectory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active_players(self) -> List[Player]:
        rows = await self.session.scalars(
            select(PlayerORM)
            .where(PlayerORM.is_active.is_(True))
            .order_by(PlayerORM.created_at, PlayerORM.id)
        )
        return [_orm_to_player(r) for r in rows]

    async def get_players(self, player_ids: Sequence[str]) -> Tuple[List[Player], List[str]]:
        """Players in the order asked for, plus the ids that were not found."""
        rows = await self.session.scalars(select(PlayerORM).where(PlayerORM.id.in_(player_ids)))
        by_id = {r.id: _orm_to_player(r) for r in rows}
        players = [by_id[pid] for pid in player_ids if pid in by_id]
        missing = [pid for pid in player_ids if pid not in by_id]
        return players, missing


class CourtStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_courts(self, status: Optional[str] = None) -> List[Court]:
        query = select(CourtORM).order_by(CourtORM.name)
        if status is not None:
            query = query.where(CourtORM.status == status)
        rows = await self.session.scalars(query)
        return [Court(id=r.id, name=r.name, type=r.type, status=r.status) for r in rows]

    async def list_existing_bookings(self, start: datetime.date, end: datetime.date) -> List[ExistingBooking]:
        rows = await self.session.scalars(
            select(MatchORM)
            .where(MatchORM.date >= start, MatchORM.date <= end, MatchORM.status != "cancelled")
            .order_by(MatchORM.date, MatchORM.time)
        )
        return [_orm_to_booking(r) for r in rows]


class MatchStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _court_taken(self, template: MatchTemplate) -> bool:
        rows = await self.session.scalars(
            select(MatchORM).where(
                MatchORM.court_id == template.court_id,
                MatchORM.date == template.date,
                MatchORM.status != "cancelled",
            )
        )
        return any(
            slots_overlap(
                template.date, template.time, template.duration_minutes,
                row.date, row.time, row.duration_minutes,
            )
            for row in rows
        )

    async def create_match(self, template: MatchTemplate) -> str:
        """Insert a match and its participants inside the current transaction.

        Overlapping matches on the court are checked again here; the partial
        unique index on matches catches anything inserted concurrently.
        """
        if template.court_id is not None and await self._court_taken(template):
            raise BookingConflictError(
                f"Court {template.court_id} was booked at {template.time:%H:%M} "
                f"on {template.date.isoformat()} in the meantime",
                court_id=template.court_id, date=template.date, time=template.time,
            )

        match_id = generate_id()
        self.session.add(MatchORM(
            id=match_id,
            title=template.title,
            match_type=template.match_type,
            skill_level=template.skill_level,
            court_id=template.court_id,
            date=template.date,
            time=template.time,
            duration_minutes=template.duration_minutes,
            max_players=template.max_players,
            description=template.description,
            notes=template.notes,
        ))
        self.session.add_all([
            MatchParticipantORM(match_id=match_id, player_id=p.player.id, team=p.team)
            for p in template.participants
        ])
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise BookingConflictError(
                f"Court {template.court_id} is already booked at {template.time:%H:%M} "
                f"on {template.date.isoformat()}",
                court_id=template.court_id, date=template.date, time=template.time,
            ) from exc

        logger.info("Created match %s (%s)", match_id, template.title)
        return match_id

    async def record_score(self, match_id: str, score: Score) -> Optional[MatchORM]:
        match_orm = await self.session.get(MatchORM, match_id)
        if match_orm is None:
            return None

        team_ids = sorted({p.team for p in match_orm.participants}, key=team_sort_key) or ["A", "B"]
        match_orm.score = score_to_json(score)
        match_orm.winner = winning_team(score, team_ids) if len(team_ids) >= 2 else None
        if not isinstance(score, NotRecorded):
            match_orm.status = "completed"
        await self.session.flush()
        return match_orm
