from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from asyncpg import Connection
from uuid import uuid4
from sqlalchemy import (
    Boolean, Column, ForeignKey, Index, Integer, String, Text,
    Date, DateTime, Time, UniqueConstraint, func, text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship

from config import get_settings

class Base(DeclarativeBase): pass

DATABASE_URL = get_settings().database_url

class FixedConnection(Connection):
    def _get_unique_id(self, prefix: str) -> str:
        return f'__asyncpg_{prefix}_{uuid4()}__'


engine = create_async_engine(
    DATABASE_URL,
    echo=get_settings().sql_echo,
    future=True,
    connect_args={
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "connection_class": FixedConnection,
    }
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def generate_id():
    return str(uuid4())

#ORM

class PlayerORM(Base):
    __tablename__ = "players"

    id            = Column(String, primary_key=True, default=generate_id)
    first_name    = Column(String, nullable=False)
    last_name     = Column(String, nullable=False, default="")
    email         = Column(String, nullable=True)
    skill_level   = Column(String, nullable=True)  # Beginner | Intermediate | Advanced | numeric rating
    is_active     = Column(Boolean, nullable=False, default=True)
    created_at    = Column(DateTime(timezone=True), server_default=func.now())

    participations = relationship("MatchParticipantORM", back_populates="player")


class CourtORM(Base):
    __tablename__ = "courts"

    id            = Column(String, primary_key=True, default=generate_id)
    name          = Column(String, nullable=False)
    type          = Column(String, nullable=False, default="outdoor")
    status        = Column(String, nullable=False, default="available")  # available | maintenance | closed

    matches = relationship("MatchORM", back_populates="court")


class MatchORM(Base):
    __tablename__ = "matches"
    __table_args__ = (
        # One live match per court and slot
        Index(
            "uq_matches_court_slot", "court_id", "date", "time",
            unique=True,
            postgresql_where=text("status <> 'cancelled' AND court_id IS NOT NULL"),
        ),
    )

    id               = Column(String, primary_key=True, default=generate_id)
    title            = Column(String, nullable=False)
    match_type       = Column(String, nullable=False, default="Doubles")
    skill_level      = Column(String, nullable=False, default="Mixed")
    court_id         = Column(String, ForeignKey("courts.id", ondelete="SET NULL"), nullable=True)
    date             = Column(Date, nullable=False)
    time             = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=90)
    status           = Column(String, nullable=False, default="scheduled")  # scheduled | in_progress | completed | cancelled
    max_players      = Column(Integer, nullable=False)
    description      = Column(Text, nullable=True)
    notes            = Column(Text, nullable=True)
    score            = Column(JSONB, nullable=True)
    winner           = Column(String, nullable=True)  # team id
    created_at       = Column(DateTime(timezone=True), server_default=func.now())

    court = relationship("CourtORM", back_populates="matches")
    participants = relationship(
        "MatchParticipantORM",
        back_populates="match",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class MatchParticipantORM(Base):
    __tablename__ = "match_participants"
    __table_args__ = (UniqueConstraint("match_id", "player_id"),)

    id            = Column(String, primary_key=True, default=generate_id)
    match_id      = Column(String, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    player_id     = Column(String, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    team          = Column(String, nullable=False)
    status        = Column(String, nullable=False, default="registered")  # registered | confirmed | cancelled | no_show
    joined_at     = Column(DateTime(timezone=True), server_default=func.now())

    match = relationship("MatchORM", back_populates="participants")
    player = relationship("PlayerORM", back_populates="participations")
