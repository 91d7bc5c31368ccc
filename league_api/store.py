# league_api/store.py
from __future__ import annotations

import threading
from typing import Dict, List

from league_api.models import Tournament


class TournamentNotFoundError(Exception):
    """Raised when a tournament id is not present in the store."""
    pass


class TournamentStore:
    """
    Simple in-memory tournament store (sufficient for single-instance deploys).
    tournament_id -> Tournament

    Callers mutate the returned aggregate and hand it back via save();
    endpoints hold the lock around reads as well as writes.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Tournament] = {}
        self._lock = threading.Lock()

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def get(self, tournament_id: str) -> Tournament:
        item = self._items.get(tournament_id)
        if item is None:
            raise TournamentNotFoundError(f"Tournament not found: {tournament_id}")
        return item

    def save(self, tournament: Tournament) -> Tournament:
        key = tournament.tournament_id.strip()
        if not key:
            raise ValueError("Tournament id must be non-empty")
        self._items[key] = tournament
        return tournament

    def delete(self, tournament_id: str) -> None:
        if self._items.pop(tournament_id, None) is None:
            raise TournamentNotFoundError(f"Tournament not found: {tournament_id}")

    def list_all(self) -> List[Tournament]:
        return list(self._items.values())

    def clear(self) -> None:
        self._items.clear()


_default_store = TournamentStore()


def get_store() -> TournamentStore:
    """FastAPI dependency; tests override it with a fresh store."""
    return _default_store
