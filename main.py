# main.py
from __future__ import annotations

import logging
import random
import uuid
from dataclasses import asdict, replace
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from league_api.config import (
    DEFAULT_OVERS_PER_MATCH,
    DEFAULT_POINTS_FOR_DRAW,
    DEFAULT_POINTS_FOR_LOSS,
    DEFAULT_POINTS_FOR_WIN,
    LEAGUE_LOG_LEVEL,
    validate_config,
)
from league_api.commentary_client import CommentaryError, request_commentary
from league_api import config as league_config
from league_api.models import (
    InningsScore,
    Match,
    PenaltyRecord,
    ScoringConfig,
    Team,
    Tournament,
    Venue,
)
from league_api.points_table import compute_sorted_table, compute_standings
from league_api.results import (
    ResultEntryError,
    record_no_result,
    record_result,
    refresh_status,
    start_match,
    tournament_summary,
)
from league_api.scheduler import (
    InsufficientTeamsError,
    NEUTRAL_VENUE_ID,
    ScheduleExistsError,
    generate_schedule,
    schedule_tournament,
)
from league_api.store import TournamentNotFoundError, TournamentStore, get_store

logging.basicConfig(
    level=LEAGUE_LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="League Fixtures & Standings API",
    version="0.1.0",
    description="Round-robin fixture generation, score entry, and NRR-ranked standings for limited-overs leagues",
)


@app.on_event("startup")
def on_startup():
    validate_config()


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Request models
# -----------------------
MatchStatusIn = Literal["NOT_STARTED", "IN_PROGRESS", "COMPLETED"]
ResultTypeIn = Literal["TEAM1_WIN", "TEAM2_WIN", "TIE", "NO_RESULT", "ABANDONED"]


class TeamIn(BaseModel):
    team_id: Optional[str] = Field(None, description="Generated as team-<n> when omitted")
    name: str = Field(..., min_length=1)
    owner: Optional[str] = None


class VenueIn(BaseModel):
    venue_id: Optional[str] = Field(None, description="Generated as venue-<n> when omitted")
    name: str = Field(..., min_length=1)


class InningsIn(BaseModel):
    runs: int = Field(..., ge=0)
    wickets: int = Field(0, ge=0, le=10)
    overs: float = Field(0.0, ge=0, description="e.g. 20.0 or 19.4")


class MatchIn(BaseModel):
    match_id: str
    round: int = Field(..., ge=1)
    team1_id: str
    team2_id: str
    venue_id: str = NEUTRAL_VENUE_ID
    status: MatchStatusIn = "NOT_STARTED"
    result_type: Optional[ResultTypeIn] = None
    team1_score: Optional[InningsIn] = None
    team2_score: Optional[InningsIn] = None
    notes: Optional[str] = None
    toss_winner_id: Optional[str] = None
    is_dls_applied: bool = False


class PenaltyIn(BaseModel):
    penalty_id: Optional[str] = None
    team_id: str
    points: int = Field(..., ge=0)
    reason: str = ""
    date: Optional[str] = None


class ScoringConfigIn(BaseModel):
    points_for_win: int = DEFAULT_POINTS_FOR_WIN
    points_for_draw: int = DEFAULT_POINTS_FOR_DRAW
    points_for_loss: int = DEFAULT_POINTS_FOR_LOSS
    overs_per_match: float = Field(DEFAULT_OVERS_PER_MATCH, ge=0)


class ScheduleRequest(BaseModel):
    teams: List[TeamIn]
    venues: List[VenueIn] = Field(default_factory=list)
    seed: Optional[int] = Field(None, description="Seed for venue assignment")


class StandingsRequest(BaseModel):
    teams: List[TeamIn]
    matches: List[MatchIn] = Field(default_factory=list)
    penalties: List[PenaltyIn] = Field(default_factory=list)
    config: ScoringConfigIn = Field(default_factory=ScoringConfigIn)


class CreateTournamentRequest(BaseModel):
    name: str = Field(..., min_length=1)
    season: Optional[str] = None
    teams: List[TeamIn] = Field(..., min_length=2)
    venues: List[VenueIn] = Field(default_factory=list)
    config: ScoringConfigIn = Field(default_factory=ScoringConfigIn)


class ResultRequest(BaseModel):
    team1: Optional[InningsIn] = Field(None, description="Innings of match.team1_id")
    team2: Optional[InningsIn] = Field(None, description="Innings of match.team2_id")
    abandoned: bool = False
    no_result: bool = Field(False, description="Completed with no result and no scores")
    notes: Optional[str] = None
    is_dls_applied: bool = False
    toss_winner_id: Optional[str] = None


class TeamUpdateIn(BaseModel):
    team_id: str
    name: Optional[str] = Field(None, min_length=1)
    owner: Optional[str] = None


class ScoringConfigPatch(BaseModel):
    points_for_win: Optional[int] = None
    points_for_draw: Optional[int] = None
    points_for_loss: Optional[int] = None
    overs_per_match: Optional[float] = Field(None, ge=0)


class UpdateTournamentRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    season: Optional[str] = None
    config: Optional[ScoringConfigPatch] = Field(None, description="Only the fields sent are changed")
    teams: List[TeamUpdateIn] = Field(default_factory=list)


class CommentaryRequest(BaseModel):
    deep: bool = Field(False, description="Ask the service for a longer analysis")


# -----------------------
# Helpers
# -----------------------
def _teams_from(items: List[TeamIn]) -> List[Team]:
    teams = [
        Team(team_id=(t.team_id or f"team-{i}").strip(), name=t.name.strip(), owner=t.owner)
        for i, t in enumerate(items)
    ]
    ids = [t.team_id for t in teams]
    names = [t.name.upper() for t in teams]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=400, detail="Team ids must be unique")
    if len(set(names)) != len(names):
        raise HTTPException(status_code=400, detail="Team names must be unique")
    return teams


def _apply_team_updates(teams: List[Team], updates: List[TeamUpdateIn]) -> List[Team]:
    by_id = {t.team_id: t for t in teams}
    for u in updates:
        current = by_id.get(u.team_id)
        if current is None:
            raise HTTPException(status_code=400, detail=f"Unknown team: {u.team_id}")
        by_id[u.team_id] = replace(
            current,
            name=u.name.strip() if u.name is not None else current.name,
            owner=u.owner if u.owner is not None else current.owner,
        )

    updated = [by_id[t.team_id] for t in teams]
    names = [t.name.upper() for t in updated]
    if len(set(names)) != len(names):
        raise HTTPException(status_code=400, detail="Team names must be unique")
    return updated


def _venues_from(items: List[VenueIn]) -> List[Venue]:
    return [Venue(venue_id=(v.venue_id or f"venue-{i}").strip(), name=v.name.strip()) for i, v in enumerate(items)]


def _innings_from(item: Optional[InningsIn]) -> Optional[InningsScore]:
    if item is None:
        return None
    return InningsScore(runs=item.runs, wickets=item.wickets, overs=item.overs)


def _matches_from(items: List[MatchIn], team_ids: List[str]) -> List[Match]:
    known = set(team_ids)
    out: List[Match] = []
    for m in items:
        if m.team1_id not in known or m.team2_id not in known:
            raise HTTPException(status_code=400, detail=f"Unknown team in match {m.match_id}")
        try:
            out.append(Match(
                match_id=m.match_id,
                round=m.round,
                team1_id=m.team1_id,
                team2_id=m.team2_id,
                venue_id=m.venue_id,
                status=m.status,
                result_type=m.result_type,
                team1_score=_innings_from(m.team1_score),
                team2_score=_innings_from(m.team2_score),
                notes=m.notes,
                toss_winner_id=m.toss_winner_id,
                is_dls_applied=m.is_dls_applied,
            ))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Match {m.match_id}: {e}")
    return out


def _penalty_from(p: PenaltyIn) -> PenaltyRecord:
    return PenaltyRecord(
        penalty_id=p.penalty_id or uuid.uuid4().hex,
        team_id=p.team_id,
        points=p.points,
        reason=p.reason,
        date=p.date or datetime.utcnow().isoformat() + "Z",
    )


def _config_from(c: ScoringConfigIn) -> ScoringConfig:
    return ScoringConfig(
        points_for_win=c.points_for_win,
        points_for_draw=c.points_for_draw,
        points_for_loss=c.points_for_loss,
        overs_per_match=c.overs_per_match,
    )


def _load_tournament(store: TournamentStore, tournament_id: str) -> Tournament:
    try:
        return store.get(tournament_id)
    except TournamentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _standings_rows(t: Tournament) -> List[dict]:
    standings = compute_standings(t.teams, t.matches, t.penalties, t.config)
    return compute_sorted_table(standings)


def _tournament_out(t: Tournament) -> Dict[str, Any]:
    return asdict(t)


# -----------------------
# Stateless core endpoints
# -----------------------
@app.post("/api/schedule")
def schedule(req: ScheduleRequest):
    teams = _teams_from(req.teams)
    venues = _venues_from(req.venues)
    rng = random.Random(req.seed) if req.seed is not None else None

    try:
        matches = generate_schedule(teams, venues, rng=rng)
    except InsufficientTeamsError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "teams_count": len(teams),
        "rounds": max(m.round for m in matches),
        "matches_count": len(matches),
        "matches": [asdict(m) for m in matches],
    }


@app.post("/api/standings")
def standings(req: StandingsRequest):
    teams = _teams_from(req.teams)
    matches = _matches_from(req.matches, [t.team_id for t in teams])
    penalties = [_penalty_from(p) for p in req.penalties]
    cfg = _config_from(req.config)

    rows = compute_sorted_table(compute_standings(teams, matches, penalties, cfg))
    return {"teams_count": len(teams), "standings": rows}


# -----------------------
# Tournament workflow (in-memory store)
# -----------------------
@app.post("/api/tournaments", status_code=201)
def create_tournament(req: CreateTournamentRequest, store: TournamentStore = Depends(get_store)):
    tournament = Tournament(
        tournament_id=uuid.uuid4().hex,
        name=req.name.strip(),
        created_date=datetime.utcnow().date().isoformat(),
        season=req.season,
        teams=_teams_from(req.teams),
        venues=_venues_from(req.venues),
        config=_config_from(req.config),
    )
    with store.lock:
        store.save(tournament)
        out = _tournament_out(tournament)
    logger.info("Created tournament %s (%s) with %d teams", tournament.tournament_id, tournament.name, len(tournament.teams))
    return out


@app.get("/api/tournaments")
def list_tournaments(store: TournamentStore = Depends(get_store)):
    with store.lock:
        return {
            "tournaments": [
                {"tournament_id": t.tournament_id, "name": t.name, "status": t.status, "teams": len(t.teams)}
                for t in store.list_all()
            ]
        }


@app.get("/api/tournaments/{tournament_id}")
def get_tournament(tournament_id: str, store: TournamentStore = Depends(get_store)):
    with store.lock:
        return _tournament_out(_load_tournament(store, tournament_id))


@app.patch("/api/tournaments/{tournament_id}")
def update_tournament(tournament_id: str, req: UpdateTournamentRequest, store: TournamentStore = Depends(get_store)):
    with store.lock:
        t = _load_tournament(store, tournament_id)

        teams = t.teams
        if req.teams:
            teams = _apply_team_updates(t.teams, req.teams)

        config = t.config
        if req.config is not None:
            config = replace(t.config, **req.config.model_dump(exclude_none=True))

        t.teams = teams
        t.config = config
        if req.name is not None:
            t.name = req.name.strip()
        if req.season is not None:
            t.season = req.season

        store.save(t)
        logger.info("Updated tournament %s", tournament_id)
        return _tournament_out(t)


@app.delete("/api/tournaments/{tournament_id}")
def delete_tournament(tournament_id: str, store: TournamentStore = Depends(get_store)):
    with store.lock:
        try:
            store.delete(tournament_id)
        except TournamentNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
    return {"deleted": tournament_id}


@app.post("/api/tournaments/{tournament_id}/schedule")
def schedule_tournament_fixtures(
    tournament_id: str,
    confirm: bool = False,
    seed: Optional[int] = None,
    store: TournamentStore = Depends(get_store),
):
    with store.lock:
        t = _load_tournament(store, tournament_id)

        rng = random.Random(seed) if seed is not None else None
        try:
            schedule_tournament(t, confirm=confirm, rng=rng)
        except ScheduleExistsError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except InsufficientTeamsError as e:
            raise HTTPException(status_code=400, detail=str(e))

        store.save(t)
        return {"tournament_id": tournament_id, "matches_count": len(t.matches), "matches": [asdict(m) for m in t.matches]}


@app.post("/api/tournaments/{tournament_id}/matches/{match_id}/start")
def start_tournament_match(tournament_id: str, match_id: str, store: TournamentStore = Depends(get_store)):
    with store.lock:
        t = _load_tournament(store, tournament_id)
        match = t.find_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail=f"Match not found: {match_id}")
        try:
            start_match(match)
        except ResultEntryError as e:
            raise HTTPException(status_code=409, detail=str(e))
        refresh_status(t)
        store.save(t)
        return {"match": asdict(match), "tournament_status": t.status}


@app.post("/api/tournaments/{tournament_id}/matches/{match_id}/result")
def submit_result(
    tournament_id: str,
    match_id: str,
    req: ResultRequest,
    store: TournamentStore = Depends(get_store),
):
    with store.lock:
        t = _load_tournament(store, tournament_id)
        match = t.find_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail=f"Match not found: {match_id}")

        try:
            if req.no_result:
                record_no_result(match, notes=req.notes)
            else:
                if req.team1 is None or req.team2 is None:
                    raise HTTPException(status_code=400, detail="Both innings are required unless no_result=true")
                record_result(
                    match,
                    _innings_from(req.team1),
                    _innings_from(req.team2),
                    abandoned=req.abandoned,
                    notes=req.notes,
                    is_dls_applied=req.is_dls_applied,
                    toss_winner_id=req.toss_winner_id,
                )
        except ResultEntryError as e:
            raise HTTPException(status_code=400, detail=str(e))

        refresh_status(t)
        store.save(t)
        return {"match": asdict(match), "tournament_status": t.status}


@app.post("/api/tournaments/{tournament_id}/penalties", status_code=201)
def add_penalty(tournament_id: str, req: PenaltyIn, store: TournamentStore = Depends(get_store)):
    with store.lock:
        t = _load_tournament(store, tournament_id)
        if req.team_id not in t.team_ids():
            raise HTTPException(status_code=400, detail=f"Unknown team: {req.team_id}")
        penalty = _penalty_from(req)
        t.penalties.append(penalty)
        store.save(t)
    logger.info("Penalty of %d points applied to %s in %s", penalty.points, penalty.team_id, tournament_id)
    return asdict(penalty)


@app.get("/api/tournaments/{tournament_id}/standings")
def tournament_standings(tournament_id: str, store: TournamentStore = Depends(get_store)):
    with store.lock:
        t = _load_tournament(store, tournament_id)
        return {"tournament_id": tournament_id, "status": t.status, "standings": _standings_rows(t)}


@app.get("/api/tournaments/{tournament_id}/summary")
def summary(tournament_id: str, store: TournamentStore = Depends(get_store)):
    with store.lock:
        return tournament_summary(_load_tournament(store, tournament_id))


@app.post("/api/tournaments/{tournament_id}/commentary")
def commentary(tournament_id: str, req: CommentaryRequest, store: TournamentStore = Depends(get_store)):
    if not league_config.COMMENTARY_ENABLED:
        raise HTTPException(
            status_code=409,
            detail="Commentary service is disabled (COMMENTARY_ENABLED=0).",
        )

    with store.lock:
        rows = _standings_rows(_load_tournament(store, tournament_id))

    try:
        text = request_commentary(rows, deep=req.deep)
    except CommentaryError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {"tournament_id": tournament_id, "commentary": text}
