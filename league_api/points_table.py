# league_api/points_table.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from league_api.models import (
    NO_CONTEST_RESULTS,
    Match,
    PenaltyRecord,
    ScoringConfig,
    Standing,
    Team,
)
from league_api.nrr_math import TeamAggregate, apply_match, nrr, overs_to_balls

logger = logging.getLogger(__name__)

FORM_LENGTH = 5

# Result codes recorded in a team's form guide
FORM_WIN = "W"
FORM_LOSS = "L"
FORM_TIE = "T"
FORM_NO_RESULT = "NR"


def _outcome_for(match: Match, team_id: str) -> str:
    """Form code for `team_id` in a completed match."""
    res = match.result_type
    is_t1 = match.team1_id == team_id

    if (is_t1 and res == "TEAM1_WIN") or (not is_t1 and res == "TEAM2_WIN"):
        return FORM_WIN
    if res == "TIE":
        return FORM_TIE
    if res in NO_CONTEST_RESULTS:
        return FORM_NO_RESULT
    return FORM_LOSS


def _max_balls(config: ScoringConfig) -> Optional[int]:
    try:
        balls = overs_to_balls(config.overs_per_match)
    except (TypeError, ValueError):
        return None
    return balls if balls > 0 else None


def _apply_nrr(agg: TeamAggregate, match: Match, team_id: str, max_balls: Optional[int]) -> None:
    """
    Adds one match to the NRR ledger of `team_id`.
    NR/abandoned and matches without both scores are skipped.
    """
    if match.result_type in NO_CONTEST_RESULTS:
        return
    if match.team1_score is None or match.team2_score is None:
        return

    if match.team1_id == team_id:
        own, opp = match.team1_score, match.team2_score
    else:
        own, opp = match.team2_score, match.team1_score

    try:
        apply_match(
            agg,
            runs_scored=own.runs,
            overs_faced=own.overs,
            all_out_batting=own.all_out,
            runs_conceded=opp.runs,
            overs_bowled=opp.overs,
            all_out_bowling=opp.all_out,
            max_balls=max_balls,
        )
    except (TypeError, ValueError) as e:
        logger.debug("Skipping NRR for match %s (team %s): %s", match.match_id, team_id, e)


def _penalty_totals(penalties: Iterable[PenaltyRecord]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for p in penalties:
        out[p.team_id] = out.get(p.team_id, 0) + int(p.points or 0)
    return out


def build_standing(
    team: Team,
    matches: Sequence[Match],
    config: ScoringConfig,
    penalty_points: int = 0,
) -> Standing:
    """
    Derives one team's row from the match list.
    Only COMPLETED matches with a result type count.
    """
    row = Standing(team_id=team.team_id, name=team.name, penalty_points=penalty_points)
    agg = TeamAggregate(team=team.team_id)
    max_balls = _max_balls(config)

    raw_points = 0
    form: List[str] = []

    for m in matches:
        if not m.has_result or not m.involves(team.team_id):
            continue

        row.played += 1
        code = _outcome_for(m, team.team_id)

        if code == FORM_WIN:
            row.won += 1
            raw_points += config.points_for_win
        elif code == FORM_TIE:
            row.tied += 1
            raw_points += config.points_for_draw
        elif code == FORM_NO_RESULT:
            row.no_result += 1
            raw_points += config.points_for_draw
        else:
            row.lost += 1
            raw_points += config.points_for_loss

        form.append(code)
        _apply_nrr(agg, m, team.team_id, max_balls)

    row.points = max(0, raw_points - penalty_points)
    row.nrr = nrr(agg)
    row.form = tuple(reversed(form[-FORM_LENGTH:]))

    row.runs_for = agg.runs_for
    row.balls_for = agg.balls_for
    row.runs_against = agg.runs_against
    row.balls_against = agg.balls_against
    return row


def ranking_key(row: Standing) -> Tuple[int, float, int, str]:
    """
    Sort key for:
    1) Points (desc)
    2) NRR (desc)
    3) Wins (desc)
    4) Team name (asc)
    """
    return (-row.points, -row.nrr, -row.won, row.name)


def compute_standings(
    teams: Sequence[Team],
    matches: Sequence[Match],
    penalties: Sequence[PenaltyRecord],
    config: ScoringConfig,
) -> List[Standing]:
    """
    Recomputes the full table from scratch. Never raises on well-typed input.
    """
    penalty_totals = _penalty_totals(penalties)
    rows = [
        build_standing(t, matches, config, penalty_totals.get(t.team_id, 0))
        for t in teams
    ]
    return sorted(rows, key=ranking_key)


def compute_sorted_table(standings: Sequence[Standing]) -> List[dict]:
    """
    Renders already-ranked standings as dict rows with a 1-based `pos`.
    """
    out: List[dict] = []
    for idx, r in enumerate(standings, start=1):
        out.append({
            "pos": idx,
            "team_id": r.team_id,
            "team": r.name,
            "played": r.played,
            "won": r.won,
            "lost": r.lost,
            "tied": r.tied,
            "nr": r.no_result,
            "points": r.points,
            "penalty_points": r.penalty_points,
            "nrr": round(r.nrr, 3),
            "form": list(r.form),
            "runs_for": r.runs_for,
            "balls_for": r.balls_for,
            "runs_against": r.runs_against,
            "balls_against": r.balls_against,
        })
    return out
