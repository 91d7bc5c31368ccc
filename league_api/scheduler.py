# league_api/scheduler.py
from __future__ import annotations

import logging
import random
import uuid
from typing import Dict, List, Optional, Sequence

from league_api.models import Match, Team, Tournament, Venue

logger = logging.getLogger(__name__)

# Venue id used when the tournament has no venues registered
NEUTRAL_VENUE_ID = "neutral"


class InsufficientTeamsError(Exception):
    """Raised when a schedule is requested for fewer than 2 teams."""
    pass


class ScheduleExistsError(Exception):
    """Raised when regenerating fixtures would discard an existing schedule without confirmation."""
    pass


def total_matches(num_teams: int) -> int:
    """Single round-robin: every pair once."""
    if num_teams < 2:
        return 0
    return num_teams * (num_teams - 1) // 2


def total_rounds(num_teams: int) -> int:
    """Odd pools get a bye seat, so 5 teams need 5 rounds, 4 teams need 3."""
    if num_teams < 2:
        return 0
    n = num_teams if num_teams % 2 == 0 else num_teams + 1
    return n - 1


def _new_match_id(round_no: int, slot: int) -> str:
    return f"M-R{round_no}-{slot}-{uuid.uuid4().hex[:8]}"


def _pick_venue(venues: Sequence[Venue], rng: random.Random) -> str:
    if not venues:
        return NEUTRAL_VENUE_ID
    return rng.choice(list(venues)).venue_id


def generate_schedule(
    teams: Sequence[Team],
    venues: Sequence[Venue],
    *,
    rng: Optional[random.Random] = None,
) -> List[Match]:
    """
    Single round-robin fixture list using the circle method.

    - Odd team counts are padded with a bye seat (None); bye pairings are skipped.
    - Round r pairs seat i with seat n-1-i.
    - Between rounds seat 0 stays fixed and the last seat moves to seat 1.
    - Each match gets a random venue from `venues`, or NEUTRAL_VENUE_ID.

    Raises:
        InsufficientTeamsError: fewer than 2 teams
    """
    if len(teams) < 2:
        raise InsufficientTeamsError(f"Need at least 2 teams to build a schedule, got {len(teams)}")

    rng = rng or random.Random()

    pool: List[Optional[Team]] = list(teams)
    if len(pool) % 2 != 0:
        pool.append(None)

    n = len(pool)
    half = n // 2

    matches: List[Match] = []
    for r in range(n - 1):
        round_no = r + 1
        for i in range(half):
            t1 = pool[i]
            t2 = pool[n - 1 - i]
            if t1 is None or t2 is None:
                continue

            matches.append(Match(
                match_id=_new_match_id(round_no, i),
                round=round_no,
                team1_id=t1.team_id,
                team2_id=t2.team_id,
                venue_id=_pick_venue(venues, rng),
                status="NOT_STARTED",
            ))

        # Rotate: fix seat 0, last seat moves into seat 1
        pool = [pool[0], pool[-1]] + pool[1:-1]

    logger.info(
        "Generated schedule: teams=%d rounds=%d matches=%d venues=%d",
        len(teams), n - 1, len(matches), len(venues),
    )
    return matches


def matches_by_round(matches: Sequence[Match]) -> Dict[int, List[Match]]:
    """Group fixtures by round number, rounds in ascending order."""
    out: Dict[int, List[Match]] = {}
    for m in sorted(matches, key=lambda x: x.round):
        out.setdefault(m.round, []).append(m)
    return out


def schedule_tournament(
    tournament: Tournament,
    *,
    confirm: bool = False,
    rng: Optional[random.Random] = None,
) -> Tournament:
    """
    Replaces the tournament's fixture list and marks it UPCOMING.

    Regenerating discards every existing fixture and result, so a tournament
    that already has matches needs confirm=True.

    Raises:
        ScheduleExistsError: matches exist and confirm is False
        InsufficientTeamsError: fewer than 2 teams
    """
    if tournament.matches and not confirm:
        raise ScheduleExistsError(
            f"Tournament {tournament.tournament_id} already has {len(tournament.matches)} matches. "
            "Regenerating replaces every fixture and result; pass confirm=true to proceed."
        )

    matches = generate_schedule(tournament.teams, tournament.venues, rng=rng)
    if tournament.matches:
        logger.warning(
            "Replacing %d existing matches in tournament %s",
            len(tournament.matches), tournament.tournament_id,
        )

    tournament.matches = matches
    tournament.status = "UPCOMING"
    return tournament
