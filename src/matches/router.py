import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings
from database import get_session
from errors import BookingConflictError
from matches.functions import generate_matches
from matches.schemas import (
    GenerateMatchesRequest, GenerateMatchesResponse, MatchTemplateOut, ProblemOut,
    ScoreIn, ScoreOut, TeamConfigurationOut, TeamOut, TeamPlanOut, TemplateConflictsOut,
)
from matches.scores import format_score, parse_score
from matches.store import CourtStore, MatchStore, PlayerDirectory
from teams.functions import team_configurations

logger = logging.getLogger(__name__)

router = APIRouter(prefix='/matches', tags=['Matches'])

# -- Dependencies --------------------------------------------------------------

def get_player_directory(session: AsyncSession = Depends(get_session)) -> PlayerDirectory:
    return PlayerDirectory(session)


def get_court_store(session: AsyncSession = Depends(get_session)) -> CourtStore:
    return CourtStore(session)


def get_match_store(session: AsyncSession = Depends(get_session)) -> MatchStore:
    return MatchStore(session)

# Routes

@router.post("/generate", response_model=GenerateMatchesResponse)
async def generate(
    body: GenerateMatchesRequest,
    players_dir: PlayerDirectory = Depends(get_player_directory),
    courts: CourtStore = Depends(get_court_store),
    matches: MatchStore = Depends(get_match_store),
):
    settings = get_settings()
    schedule = body.schedule.to_defaults(settings.default_match_duration, settings.default_match_type)

    if body.player_ids is None:
        players = await players_dir.list_active_players()
    else:
        players, missing = await players_dir.get_players(body.player_ids)
        if missing:
            raise HTTPException(status_code=404, detail=f"Unknown players: {', '.join(missing)}")

    existing = await courts.list_existing_bookings(schedule.date, schedule.date)
    court_list = await courts.list_courts() if schedule.end_time is not None else []

    result = generate_matches(
        players, body.preferred_team_size, schedule, existing, court_list,
        rotation=body.rotation, number_of_rounds=body.number_of_rounds,
    )

    created: List[str] = []
    if body.persist:
        skip = result.conflicting_indexes
        try:
            for index, template in enumerate(result.match_templates):
                if index not in skip:
                    created.append(await matches.create_match(template))
        except BookingConflictError as exc:
            logger.warning("Booking race while saving generated matches: %s", exc)
            raise HTTPException(status_code=409, detail=str(exc))

    return GenerateMatchesResponse(
        team_plan=TeamPlanOut.model_validate(result.team_plan),
        teams=[TeamOut.model_validate(t) for t in result.teams],
        match_templates=[MatchTemplateOut.model_validate(t) for t in result.match_templates],
        conflicts=[TemplateConflictsOut.model_validate(c) for c in result.conflicts],
        problems=[ProblemOut.model_validate(p) for p in result.problems],
        created_match_ids=created,
    )


@router.get("/team-configurations", response_model=List[TeamConfigurationOut])
async def list_team_configurations(
    total_players: int = Query(..., ge=0),
    preferred_team_size: Optional[int] = Query(None, ge=2),
):
    return [
        TeamConfigurationOut.model_validate(c)
        for c in team_configurations(total_players, preferred_team_size)
    ]


@router.post("/{match_id}/score", response_model=ScoreOut)
async def submit_score(
    match_id: str,
    body: ScoreIn,
    matches: MatchStore = Depends(get_match_store),
):
    try:
        score = parse_score(body.score)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    match_orm = await matches.record_score(match_id, score)
    if match_orm is None:
        raise HTTPException(status_code=404, detail="Match not found")

    return ScoreOut(
        match_id=match_id,
        score=match_orm.score,
        display=format_score(score),
        winner=match_orm.winner,
    )
