from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

from league_api.config import (
    DEFAULT_OVERS_PER_MATCH,
    DEFAULT_POINTS_FOR_DRAW,
    DEFAULT_POINTS_FOR_LOSS,
    DEFAULT_POINTS_FOR_WIN,
)


# -----------------------------
# Match lifecycle + result semantics
# -----------------------------
MatchStatus = Literal["NOT_STARTED", "IN_PROGRESS", "COMPLETED"]
MatchResultType = Literal["TEAM1_WIN", "TEAM2_WIN", "TIE", "NO_RESULT", "ABANDONED"]
TournamentStatus = Literal["UPCOMING", "ONGOING", "COMPLETED"]

# Outcomes that void the NRR ledger for a match
NO_CONTEST_RESULTS = ("NO_RESULT", "ABANDONED")

ALL_OUT_WICKETS = 10


# -----------------------------
# Roster
# -----------------------------
@dataclass(frozen=True)
class Team:
    team_id: str
    name: str
    owner: Optional[str] = None


@dataclass(frozen=True)
class Venue:
    venue_id: str
    name: str


# -----------------------------
# Match
# -----------------------------
@dataclass(frozen=True)
class InningsScore:
    """
    One side's innings.
    overs uses cricket notation: 19.4 = 19 overs + 4 balls.
    """
    runs: int
    wickets: int = 0
    overs: float = 0.0

    @property
    def all_out(self) -> bool:
        return self.wickets >= ALL_OUT_WICKETS


@dataclass
class Match:
    match_id: str
    round: int
    team1_id: str
    team2_id: str
    venue_id: str

    status: MatchStatus = "NOT_STARTED"
    result_type: Optional[MatchResultType] = None

    # Optional completed-innings data
    team1_score: Optional[InningsScore] = None
    team2_score: Optional[InningsScore] = None

    notes: Optional[str] = None
    toss_winner_id: Optional[str] = None
    is_dls_applied: bool = False

    def __post_init__(self) -> None:
        if self.team1_id == self.team2_id:
            raise ValueError("team1 and team2 must be different")
        if self.round < 1:
            raise ValueError(f"Invalid round: {self.round} (rounds start at 1)")
        if self.status == "COMPLETED" and self.result_type is None:
            raise ValueError("A COMPLETED match must have a result_type")
        if self.status != "COMPLETED" and self.result_type is not None:
            raise ValueError(f"A {self.status} match cannot carry a result_type")

    @property
    def has_result(self) -> bool:
        return self.status == "COMPLETED" and self.result_type is not None

    def involves(self, team_id: str) -> bool:
        return team_id in (self.team1_id, self.team2_id)


# -----------------------------
# Penalties + scoring rules
# -----------------------------
@dataclass(frozen=True)
class PenaltyRecord:
    penalty_id: str
    team_id: str
    points: int
    reason: str = ""
    date: str = ""


@dataclass(frozen=True)
class ScoringConfig:
    points_for_win: int = DEFAULT_POINTS_FOR_WIN
    points_for_draw: int = DEFAULT_POINTS_FOR_DRAW
    points_for_loss: int = DEFAULT_POINTS_FOR_LOSS

    # Full allotment credited to a side bowled out
    overs_per_match: float = DEFAULT_OVERS_PER_MATCH


# -----------------------------
# Derived standing row
# -----------------------------
@dataclass
class Standing:
    team_id: str
    name: str

    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0
    no_result: int = 0

    points: int = 0
    penalty_points: int = 0
    nrr: float = 0.0

    # Most recent first
    form: Tuple[str, ...] = ()

    runs_for: int = 0
    balls_for: int = 0
    runs_against: int = 0
    balls_against: int = 0


# -----------------------------
# Tournament aggregate
# -----------------------------
@dataclass
class Tournament:
    tournament_id: str
    name: str
    created_date: str
    season: Optional[str] = None
    status: Optional[TournamentStatus] = None

    teams: List[Team] = field(default_factory=list)
    venues: List[Venue] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)
    penalties: List[PenaltyRecord] = field(default_factory=list)
    config: ScoringConfig = field(default_factory=ScoringConfig)

    def find_match(self, match_id: str) -> Optional[Match]:
        for m in self.matches:
            if m.match_id == match_id:
                return m
        return None

    def team_ids(self) -> List[str]:
        return [t.team_id for t in self.teams]
