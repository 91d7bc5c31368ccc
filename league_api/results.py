# league_api/results.py
from __future__ import annotations

import logging
from typing import Optional

from league_api.models import ALL_OUT_WICKETS, InningsScore, Match, MatchResultType, Tournament
from league_api.nrr_math import overs_to_balls

logger = logging.getLogger(__name__)


class ResultEntryError(Exception):
    """Raised when a submitted score cannot be recorded against a match."""
    pass


def _validate_score(score: InningsScore, label: str) -> None:
    if score.runs < 0:
        raise ResultEntryError(f"{label} runs cannot be negative")
    if score.wickets < 0 or score.wickets > ALL_OUT_WICKETS:
        raise ResultEntryError(f"{label} wickets must be between 0 and {ALL_OUT_WICKETS}")
    try:
        overs_to_balls(score.overs)
    except ValueError as e:
        raise ResultEntryError(f"{label} overs invalid: {e}") from e


def decide_result(team1_score: InningsScore, team2_score: InningsScore) -> MatchResultType:
    """More runs wins; equal runs is a tie."""
    if team1_score.runs > team2_score.runs:
        return "TEAM1_WIN"
    if team2_score.runs > team1_score.runs:
        return "TEAM2_WIN"
    return "TIE"


def start_match(match: Match) -> Match:
    if match.status == "COMPLETED":
        raise ResultEntryError(f"Match {match.match_id} is already completed")
    match.status = "IN_PROGRESS"
    return match


def record_result(
    match: Match,
    team1_score: InningsScore,
    team2_score: InningsScore,
    *,
    abandoned: bool = False,
    notes: Optional[str] = None,
    is_dls_applied: bool = False,
    toss_winner_id: Optional[str] = None,
) -> Match:
    """
    Canonical score entry. Mutates `match` in place and returns it.

    Conventions:
    - team1_score belongs to match.team1_id, team2_score to match.team2_id.
    - abandoned=True records ABANDONED regardless of runs (scores are kept).
    - Otherwise the winner is derived from runs.

    Re-submitting a result overwrites the previous one.
    """
    _validate_score(team1_score, "team1")
    _validate_score(team2_score, "team2")

    if toss_winner_id is not None and not match.involves(toss_winner_id):
        raise ResultEntryError("toss_winner_id must be one of the two teams in the match")

    result: MatchResultType = "ABANDONED" if abandoned else decide_result(team1_score, team2_score)

    match.status = "COMPLETED"
    match.result_type = result
    match.team1_score = team1_score
    match.team2_score = team2_score
    match.notes = notes
    match.is_dls_applied = bool(is_dls_applied)
    match.toss_winner_id = toss_winner_id

    logger.info("Recorded result for %s: %s", match.match_id, result)
    return match


def record_no_result(match: Match, notes: Optional[str] = None) -> Match:
    """Completed without a result: points split, no NRR contribution."""
    match.status = "COMPLETED"
    match.result_type = "NO_RESULT"
    match.team1_score = None
    match.team2_score = None
    match.notes = notes
    match.is_dls_applied = False
    match.toss_winner_id = None
    logger.info("Recorded no-result for %s", match.match_id)
    return match


def refresh_status(tournament: Tournament) -> Tournament:
    """
    UPCOMING until the first result, ONGOING while fixtures remain,
    COMPLETED once every fixture is done. Unscheduled tournaments keep None.
    """
    if not tournament.matches:
        return tournament

    done = sum(1 for m in tournament.matches if m.status == "COMPLETED")
    started = sum(1 for m in tournament.matches if m.status != "NOT_STARTED")

    if done == len(tournament.matches):
        tournament.status = "COMPLETED"
    elif started > 0:
        tournament.status = "ONGOING"
    else:
        tournament.status = "UPCOMING"
    return tournament


def tournament_summary(tournament: Tournament) -> dict:
    matches = tournament.matches
    return {
        "tournament_id": tournament.tournament_id,
        "status": tournament.status,
        "teams": len(tournament.teams),
        "venues": len(tournament.venues),
        "matches": len(matches),
        "completed": sum(1 for m in matches if m.status == "COMPLETED"),
        "in_progress": sum(1 for m in matches if m.status == "IN_PROGRESS"),
        "remaining": sum(1 for m in matches if m.status == "NOT_STARTED"),
        "rounds": max((m.round for m in matches), default=0),
    }
