# league_api/nrr_math.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Union

BALLS_PER_OVER = 6
OversLike = Union[str, int, float]


@dataclass
class TeamAggregate:
    """
    Aggregate stats needed for NRR.
    All overs are stored as BALLS (not float overs) to avoid mistakes.
    """
    team: str
    runs_for: int = 0
    balls_for: int = 0
    runs_against: int = 0
    balls_against: int = 0


def overs_to_balls(overs: OversLike) -> int:
    """
    Converts cricket overs notation to balls.

    Supported inputs:
    - 19.4 (float) -> 19 overs + 4 balls = 118 balls
    - "19.4" (string overs notation)
    - 20 (int overs)

    Rule: the first fractional digit is a ball count, rounded half-up
    and capped at 6, so 0.6 is a full over (6 balls).
    """
    if overs is None:
        raise ValueError("Overs cannot be None")

    if isinstance(overs, str):
        s = overs.strip()
        if not s:
            raise ValueError("Overs cannot be empty")
        try:
            value = float(s)
        except ValueError as e:
            raise ValueError(f"Invalid overs: {overs}") from e
    else:
        value = float(overs)

    if math.isnan(value) or math.isinf(value) or value < 0:
        raise ValueError(f"Invalid overs: {overs}")

    ov_i = math.floor(value)
    # round half-up; round() would bank 4.5 down to 4
    balls_i = min(math.floor(round((value - ov_i) * 10, 6) + 0.5), BALLS_PER_OVER)

    return ov_i * BALLS_PER_OVER + balls_i


def balls_to_overs_float(balls: int) -> float:
    if balls <= 0:
        return 0.0
    return balls / float(BALLS_PER_OVER)


def true_overs(overs: OversLike) -> float:
    """19.4 -> 19.667, 20.0 -> 20.0, 0.6 -> 1.0"""
    return balls_to_overs_float(overs_to_balls(overs))


def run_rate(runs: int, balls: int) -> float:
    overs = balls_to_overs_float(balls)
    if overs == 0.0:
        return 0.0
    return runs / overs


def nrr(agg: TeamAggregate) -> float:
    """
    Net Run Rate = (runs_for / overs_for) - (runs_against / overs_against)

    Only defined once the team has both batted and bowled; 0.0 otherwise.
    """
    if agg.balls_for <= 0 or agg.balls_against <= 0:
        return 0.0
    return run_rate(agg.runs_for, agg.balls_for) - run_rate(agg.runs_against, agg.balls_against)


def innings_balls(overs: OversLike, *, all_out: bool, max_balls: Optional[int]) -> int:
    """
    NRR rule: if a team is all-out, the innings counts as the full allotment.
    Otherwise, use actual balls faced.

    Raises ValueError if the allotment is needed but unknown (max_balls None/<=0).
    """
    if all_out:
        if max_balls is None or max_balls <= 0:
            raise ValueError("Overs-per-match limit is not set; cannot normalize an all-out innings")
        return max_balls
    return overs_to_balls(overs)


def apply_match(
    agg_team: TeamAggregate,
    *,
    runs_scored: int,
    overs_faced: OversLike,
    all_out_batting: bool,
    runs_conceded: int,
    overs_bowled: OversLike,
    all_out_bowling: bool,
    max_balls: Optional[int],
) -> None:
    """
    Canonical aggregate updater for one side of a completed-innings match.

    - Applies all-out normalization internally
    - DOES NOT handle NR/abandoned: caller must not call this for those results.
    - Both innings are validated before the aggregate is touched.
    """
    b_for = innings_balls(overs_faced, all_out=all_out_batting, max_balls=max_balls)
    b_against = innings_balls(overs_bowled, all_out=all_out_bowling, max_balls=max_balls)

    if runs_scored < 0 or runs_conceded < 0:
        raise ValueError("Runs cannot be negative")

    agg_team.runs_for += int(runs_scored)
    agg_team.balls_for += int(b_for)
    agg_team.runs_against += int(runs_conceded)
    agg_team.balls_against += int(b_against)
