"""
Tests for the HTTP surface.
"""

import threading

import pytest
from fastapi.testclient import TestClient

import main
from league_api import commentary_client, config
from league_api.models import InningsScore
from league_api.store import TournamentStore, get_store


@pytest.fixture
def store():
    return TournamentStore()


@pytest.fixture
def client(store):
    main.app.dependency_overrides[get_store] = lambda: store
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def teams(*names):
    return [{"team_id": n.lower(), "name": n} for n in names]


def create(client, names=("A", "B", "C", "D"), venues=()):
    resp = client.post("/api/tournaments", json={
        "name": "Summer Cup",
        "teams": teams(*names),
        "venues": [{"name": v} for v in venues],
    })
    assert resp.status_code == 201
    return resp.json()["tournament_id"]


class TestStateless:
    """Pure schedule and standings endpoints."""

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_schedule(self, client):
        resp = client.post("/api/schedule", json={"teams": teams("A", "B", "C", "D", "E"), "seed": 3})
        body = resp.json()

        assert resp.status_code == 200
        assert body["matches_count"] == 10
        assert body["rounds"] == 5
        assert {m["venue_id"] for m in body["matches"]} == {"neutral"}

    def test_schedule_insufficient_teams(self, client):
        resp = client.post("/api/schedule", json={"teams": teams("A")})
        assert resp.status_code == 400

    def test_schedule_duplicate_names(self, client):
        resp = client.post("/api/schedule", json={"teams": [{"name": "A"}, {"name": "a"}]})
        assert resp.status_code == 400

    def test_standings(self, client):
        resp = client.post("/api/standings", json={
            "teams": teams("A", "B"),
            "matches": [{
                "match_id": "m1", "round": 1, "team1_id": "a", "team2_id": "b",
                "status": "COMPLETED", "result_type": "TEAM1_WIN",
                "team1_score": {"runs": 180, "wickets": 5, "overs": 20.0},
                "team2_score": {"runs": 150, "wickets": 10, "overs": 18.3},
            }],
            "penalties": [{"team_id": "a", "points": 1, "reason": "over rate"}],
        })
        rows = resp.json()["standings"]

        assert resp.status_code == 200
        assert rows[0]["team"] == "A"
        assert rows[0]["points"] == 1
        assert rows[0]["nrr"] == 1.5
        assert rows[1]["nrr"] == -1.5

    def test_standings_unknown_team(self, client):
        resp = client.post("/api/standings", json={
            "teams": teams("A", "B"),
            "matches": [{"match_id": "m1", "round": 1, "team1_id": "a", "team2_id": "z"}],
        })
        assert resp.status_code == 400

    @pytest.mark.parametrize("status, result", [("COMPLETED", None), ("NOT_STARTED", "TEAM1_WIN"), ("IN_PROGRESS", "TIE")])
    def test_standings_inconsistent_status(self, client, status, result):
        resp = client.post("/api/standings", json={
            "teams": teams("A", "B"),
            "matches": [{
                "match_id": "m1", "round": 1, "team1_id": "a", "team2_id": "b",
                "status": status, "result_type": result,
            }],
        })
        assert resp.status_code == 400

    def test_standings_same_team_match(self, client):
        resp = client.post("/api/standings", json={
            "teams": teams("A", "B"),
            "matches": [{"match_id": "m1", "round": 1, "team1_id": "a", "team2_id": "a"}],
        })
        assert resp.status_code == 400


class TestTournamentFlow:
    """Create, schedule, score, rank."""

    def test_create_and_fetch(self, client):
        tid = create(client)
        body = client.get(f"/api/tournaments/{tid}").json()

        assert body["name"] == "Summer Cup"
        assert body["status"] is None
        assert len(body["teams"]) == 4
        assert client.get("/api/tournaments").json()["tournaments"][0]["tournament_id"] == tid

    def test_missing_tournament(self, client):
        assert client.get("/api/tournaments/nope").status_code == 404
        assert client.delete("/api/tournaments/nope").status_code == 404

    def test_schedule_and_regenerate_guard(self, client):
        tid = create(client, venues=("Oval", "Dome"))

        first = client.post(f"/api/tournaments/{tid}/schedule")
        assert first.status_code == 200
        assert first.json()["matches_count"] == 6

        again = client.post(f"/api/tournaments/{tid}/schedule")
        assert again.status_code == 409

        forced = client.post(f"/api/tournaments/{tid}/schedule", params={"confirm": "true"})
        assert forced.status_code == 200
        assert client.get(f"/api/tournaments/{tid}").json()["status"] == "UPCOMING"

    def test_results_standings_summary(self, client):
        tid = create(client)
        matches = client.post(f"/api/tournaments/{tid}/schedule").json()["matches"]

        first = matches[0]
        resp = client.post(f"/api/tournaments/{tid}/matches/{first['match_id']}/result", json={
            "team1": {"runs": 170, "wickets": 4, "overs": 20.0},
            "team2": {"runs": 120, "wickets": 10, "overs": 16.2},
        })
        assert resp.status_code == 200
        assert resp.json()["match"]["result_type"] == "TEAM1_WIN"
        assert resp.json()["tournament_status"] == "ONGOING"

        rows = client.get(f"/api/tournaments/{tid}/standings").json()["standings"]
        assert rows[0]["team_id"] == first["team1_id"]
        assert rows[0]["points"] == 2
        assert rows[-1]["team_id"] == first["team2_id"]

        summary = client.get(f"/api/tournaments/{tid}/summary").json()
        assert summary["completed"] == 1
        assert summary["remaining"] == 5

    def test_result_validation(self, client):
        tid = create(client)
        mid = client.post(f"/api/tournaments/{tid}/schedule").json()["matches"][0]["match_id"]

        missing = client.post(f"/api/tournaments/{tid}/matches/{mid}/result", json={"team1": {"runs": 10}})
        assert missing.status_code == 400

        unknown = client.post(f"/api/tournaments/{tid}/matches/zzz/result", json={"no_result": True})
        assert unknown.status_code == 404

        nr = client.post(f"/api/tournaments/{tid}/matches/{mid}/result", json={"no_result": True})
        assert nr.json()["match"]["result_type"] == "NO_RESULT"

    def test_start_match(self, client):
        tid = create(client)
        mid = client.post(f"/api/tournaments/{tid}/schedule").json()["matches"][0]["match_id"]

        resp = client.post(f"/api/tournaments/{tid}/matches/{mid}/start")
        assert resp.json()["match"]["status"] == "IN_PROGRESS"

    def test_penalty(self, client):
        tid = create(client)
        resp = client.post(f"/api/tournaments/{tid}/penalties", json={"team_id": "a", "points": 2, "reason": "fielding"})
        assert resp.status_code == 201

        bad = client.post(f"/api/tournaments/{tid}/penalties", json={"team_id": "zz", "points": 2})
        assert bad.status_code == 400

        rows = client.get(f"/api/tournaments/{tid}/standings").json()["standings"]
        a = next(r for r in rows if r["team_id"] == "a")
        assert a["points"] == 0
        assert a["penalty_points"] == 2

    def test_delete(self, client, store):
        tid = create(client)
        assert client.delete(f"/api/tournaments/{tid}").status_code == 200
        assert store.list_all() == []


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


class TestCommentary:
    """Optional commentary service passthrough."""

    def test_disabled(self, client, monkeypatch):
        monkeypatch.setattr(config, "COMMENTARY_ENABLED", False)
        tid = create(client)
        assert client.post(f"/api/tournaments/{tid}/commentary", json={}).status_code == 409

    def test_enabled(self, client, monkeypatch):
        monkeypatch.setattr(config, "COMMENTARY_ENABLED", True)
        monkeypatch.setattr(config, "COMMENTARY_API_URL", "https://example.test/commentary")
        monkeypatch.setattr(config, "COMMENTARY_API_KEY", "k")

        seen = {}

        def fake_post(url, json=None, headers=None, timeout=None):
            seen["prompt"] = json["prompt"]
            return FakeResponse(200, {"text": "Alpha lead the table."})

        monkeypatch.setattr(commentary_client.requests, "post", fake_post)

        tid = create(client)
        resp = client.post(f"/api/tournaments/{tid}/commentary", json={"deep": True})

        assert resp.status_code == 200
        assert resp.json()["commentary"] == "Alpha lead the table."
        assert "Standings:" in seen["prompt"]

    def test_upstream_failure(self, client, monkeypatch):
        monkeypatch.setattr(config, "COMMENTARY_ENABLED", True)
        monkeypatch.setattr(config, "COMMENTARY_API_URL", "https://example.test/commentary")
        monkeypatch.setattr(config, "COMMENTARY_API_KEY", "k")
        monkeypatch.setattr(commentary_client.requests, "post", lambda *a, **kw: FakeResponse(500, {}))

        tid = create(client)
        assert client.post(f"/api/tournaments/{tid}/commentary", json={}).status_code == 502


class TestTournamentUpdates:
    """Editing config, details and teams after creation."""

    def test_config_change_reflows_standings(self, client):
        tid = create(client)
        mid = client.post(f"/api/tournaments/{tid}/schedule").json()["matches"][0]["match_id"]
        client.post(f"/api/tournaments/{tid}/matches/{mid}/result", json={
            "team1": {"runs": 150, "wickets": 6, "overs": 20.0},
            "team2": {"runs": 90, "wickets": 10, "overs": 10.0},
        })

        before = client.get(f"/api/tournaments/{tid}/standings").json()["standings"][0]
        assert before["points"] == 2
        assert before["nrr"] == pytest.approx(3.0)

        resp = client.patch(f"/api/tournaments/{tid}", json={"config": {"points_for_win": 3, "overs_per_match": 10}})
        assert resp.status_code == 200
        assert resp.json()["config"]["points_for_draw"] == 1

        after = client.get(f"/api/tournaments/{tid}/standings").json()["standings"][0]
        assert after["points"] == 3
        assert after["nrr"] == pytest.approx(150 / 20 - 90 / 10)

    def test_details_and_team_rename(self, client):
        tid = create(client)
        resp = client.patch(f"/api/tournaments/{tid}", json={
            "name": "Winter Cup",
            "season": "2027",
            "teams": [{"team_id": "a", "name": "Aces", "owner": "Sam"}],
        })
        body = resp.json()

        assert resp.status_code == 200
        assert body["name"] == "Winter Cup"
        assert body["season"] == "2027"
        assert body["teams"][0] == {"team_id": "a", "name": "Aces", "owner": "Sam"}
        assert body["teams"][1]["name"] == "B"

    def test_rename_clash_rejected(self, client):
        tid = create(client)
        resp = client.patch(f"/api/tournaments/{tid}", json={"name": "X", "teams": [{"team_id": "a", "name": "b"}]})
        assert resp.status_code == 400
        body = client.get(f"/api/tournaments/{tid}").json()
        assert body["teams"][0]["name"] == "A"
        assert body["name"] == "Summer Cup"

    def test_unknown_team_rejected(self, client):
        tid = create(client)
        resp = client.patch(f"/api/tournaments/{tid}", json={"teams": [{"team_id": "zz", "name": "Z"}]})
        assert resp.status_code == 400

    def test_missing_tournament(self, client):
        assert client.patch("/api/tournaments/nope", json={"name": "X"}).status_code == 404


class TestConsistentReads:
    """Readers wait for an in-flight write to finish."""

    def test_standings_wait_for_writer(self, client, store):
        tid = create(client)
        mid = client.post(f"/api/tournaments/{tid}/schedule").json()["matches"][0]["match_id"]
        match = store.get(tid).find_match(mid)

        finished = threading.Event()
        seen = {}

        def read():
            seen["rows"] = client.get(f"/api/tournaments/{tid}/standings").json()["standings"]
            finished.set()

        reader = threading.Thread(target=read)
        with store.lock:
            match.status = "COMPLETED"
            match.result_type = "TEAM1_WIN"
            reader.start()
            assert not finished.wait(0.3)
            match.team1_score = InningsScore(180, 5, 20.0)
            match.team2_score = InningsScore(150, 10, 18.3)

        reader.join(timeout=5)
        assert finished.is_set()

        winner = next(r for r in seen["rows"] if r["team_id"] == match.team1_id)
        assert winner["won"] == 1
        assert winner["runs_for"] == 180
        assert winner["nrr"] == pytest.approx(1.5)

    def test_summary_waits_for_writer(self, client, store):
        tid = create(client)
        finished = threading.Event()

        def read():
            client.get(f"/api/tournaments/{tid}/summary")
            finished.set()

        reader = threading.Thread(target=read)
        with store.lock:
            reader.start()
            assert not finished.wait(0.2)

        reader.join(timeout=5)
        assert finished.is_set()
