"""Match scores as explicit variants.

Stored scores come in several loose shapes (``"6-4, 4-6"``, ``{"teamA": 6,
"teamB": 4}``, ``{"sets": [...]}``, ``{"A": 3, "B": 5}``). ``parse_score``
turns any of them into one of the variants below and ``score_to_json`` writes
the single canonical shape back.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from teams.functions import team_sort_key
from teams.models import TeamId


@dataclass(frozen=True)
class NotRecorded:
    pass


@dataclass(frozen=True)
class SetScores:
    # (first team, second team) games per set
    sets: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class TeamTotals:
    totals: Dict[TeamId, int] = field(default_factory=dict)


Score = Union[NotRecorded, SetScores, TeamTotals]


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"Not a score value: {value!r}")
    return int(value)


def _parse_set(raw: Any) -> Tuple[int, int]:
    if isinstance(raw, dict):
        return _as_int(raw["teamA"]), _as_int(raw["teamB"])
    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        return _as_int(raw[0]), _as_int(raw[1])
    if isinstance(raw, str):
        parts = [p.strip() for p in raw.split("-")]
        if len(parts) == 2:
            return _as_int(parts[0]), _as_int(parts[1])
    raise ValueError(f"Not a set score: {raw!r}")


def parse_score(raw: Any) -> Score:
    if isinstance(raw, (NotRecorded, SetScores, TeamTotals)):
        return raw
    if raw is None or raw == "" or raw == {} or raw == []:
        return NotRecorded()

    try:
        if isinstance(raw, str):
            games = [g for g in (part.strip() for part in raw.split(",")) if g]
            return SetScores(tuple(_parse_set(g) for g in games))
        if isinstance(raw, (list, tuple)):
            return SetScores(tuple(_parse_set(s) for s in raw))
        if isinstance(raw, dict):
            if "sets" in raw:
                return SetScores(tuple(_parse_set(s) for s in raw["sets"]))
            if "teamA" in raw and "teamB" in raw:
                return SetScores((_parse_set(raw),))
            totals = raw.get("totals", raw)
            return TeamTotals({str(team): _as_int(points) for team, points in totals.items()})
    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"Unrecognised score: {raw!r}") from exc

    raise ValueError(f"Unrecognised score: {raw!r}")


def score_to_json(score: Score) -> Optional[dict]:
    if isinstance(score, SetScores):
        return {"sets": [{"teamA": a, "teamB": b} for a, b in score.sets]}
    if isinstance(score, TeamTotals):
        return {"totals": dict(score.totals)}
    return None


def format_score(score: Score) -> Optional[str]:
    if isinstance(score, SetScores):
        return ", ".join(f"{a}-{b}" for a, b in score.sets)
    if isinstance(score, TeamTotals):
        return " - ".join(
            f"{team} {score.totals[team]}" for team in sorted(score.totals, key=team_sort_key)
        )
    return None


def winning_team(score: Score, team_ids: Sequence[TeamId] = ("A", "B")) -> Optional[TeamId]:
    """Winner of a match, or None for a tie or missing score.

    Set scores are read as (first team, second team) of ``team_ids``.
    """
    if isinstance(score, SetScores):
        first = sum(1 for a, b in score.sets if a > b)
        second = sum(1 for a, b in score.sets if b > a)
        if first == second:
            return None
        return team_ids[0] if first > second else team_ids[1]
    if isinstance(score, TeamTotals) and score.totals:
        best = max(score.totals.values())
        leaders = [team for team, points in score.totals.items() if points == best]
        return leaders[0] if len(leaders) == 1 else None
    return None
