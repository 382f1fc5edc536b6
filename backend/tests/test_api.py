import time
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from fitness_rpg.database import Database
from fitness_rpg.main import create_app
from fitness_rpg.services.auth_service import AuthService

USER = {"id": "firebase-uid-1", "email": "hunter@example.com", "username": "Jinwoo"}


def workout_body(seconds=3600, started_at="2026-03-10T09:00:00Z", ended_at=None, **overrides):
    body = {
        "userId": USER["id"],
        "name": "Run",
        "durationSeconds": seconds,
        "startedAt": started_at,
        "endedAt": ended_at or "2026-03-10T16:00:00Z",
    }
    body.update(overrides)
    return body


@pytest.fixture
def user(client):
    response = client.post("/api/users", json=USER)
    assert response.status_code == 201
    return response.json()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy", "database": True}


def test_create_user_is_idempotent(client, user):
    assert user["level"] == 1
    assert user["exp"] == 0
    assert user["rank"] == "E Rank"
    assert user["currentWorkout"] is None

    again = client.post("/api/users", json={**USER, "username": "Someone else"})

    assert again.status_code == 200
    assert again.json()["username"] == "Jinwoo"


def test_create_user_default_username(client):
    response = client.post("/api/users", json={"id": "uid-2", "email": "x@example.com"})

    assert response.json()["username"] == "User"


def test_create_user_rejects_bad_email(client):
    response = client.post("/api/users", json={"id": "uid-3", "email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_unknown_user_is_404(client):
    response = client.get("/api/users/nobody")

    assert response.status_code == 404
    assert response.json() == {"detail": "User not found", "error": "not_found"}


def test_record_workout(client, user):
    response = client.post("/api/workouts", json=workout_body(seconds="3600"))

    assert response.status_code == 201
    data = response.json()
    assert data["workout"]["durationSeconds"] == 3600
    assert data["workout"]["userId"] == USER["id"]
    assert data["expGained"] == 1000
    assert data["leveledUp"] is False
    assert data["user"]["exp"] == 1000
    assert data["user"]["level"] == 1
    assert data["user"]["totalWorkoutSeconds"] == 3600
    assert data["user"]["expIntoLevel"] == 1000
    assert data["user"]["expForNextLevel"] == 50_000


def test_short_workout_is_400(client, user):
    response = client.post("/api/workouts", json=workout_body(seconds=10))

    assert response.status_code == 400
    assert response.json()["detail"] == "Workout must be at least 30 seconds"


def test_daily_limit_is_400(client, user):
    first = workout_body(seconds=20_000, started_at="2026-03-10T00:00:00Z")
    assert client.post("/api/workouts", json=first).status_code == 201

    response = client.post("/api/workouts", json=workout_body(seconds=2_000))

    assert response.status_code == 400
    assert response.json() == {
        "detail": "Daily workout limit (6 hours) exceeded",
        "error": "limit_exceeded",
        "limit": "daily_duration",
    }
    assert client.get(f"/api/users/{USER['id']}").json()["totalWorkoutSeconds"] == 20_000


def test_malformed_dates_are_400(client, user):
    response = client.post("/api/workouts", json=workout_body(started_at="yesterday-ish"))

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_workout_for_unknown_user(client):
    response = client.post("/api/workouts", json=workout_body())

    assert response.status_code == 404


def test_list_workouts_newest_first(client, user):
    for day in range(1, 13):
        body = workout_body(
            seconds=60,
            started_at=f"2026-03-{day:02d}T09:00:00Z",
            ended_at=f"2026-03-{day:02d}T09:01:00Z",
            name=f"Day {day}",
        )
        assert client.post("/api/workouts", json=body).status_code == 201

    workouts = client.get(f"/api/workouts/{USER['id']}").json()

    assert len(workouts) == 10
    assert workouts[0]["name"] == "Day 12"
    assert workouts[-1]["name"] == "Day 3"
    assert workouts[0]["startedAt"] == "2026-03-12T09:00:00Z"

    assert len(client.get(f"/api/workouts/{USER['id']}?limit=2").json()) == 2
    assert client.get(f"/api/workouts/{USER['id']}?limit=11").status_code == 400


def test_today_summary(client, user):
    response = client.get(f"/api/workouts/{USER['id']}/today")

    assert response.status_code == 200
    assert response.json()["remainingSeconds"] == 21_600


def test_update_username(client, user):
    response = client.patch(f"/api/users/{USER['id']}/username", json={"username": "Shadow Monarch"})

    assert response.status_code == 200
    assert response.json()["username"] == "Shadow Monarch"

    blank = client.patch(f"/api/users/{USER['id']}/username", json={"username": "   "})
    assert blank.status_code == 400


def test_current_workout_heartbeat_and_restore(client, user):
    start = int(time.time() * 1000) - 90_000
    heartbeat = {"workout": {"name": "Run", "startTime": start, "elapsedSeconds": 85}}

    saved = client.patch(f"/api/users/{USER['id']}/current-workout", json=heartbeat)
    assert saved.status_code == 200
    assert saved.json()["currentWorkout"]["elapsedSeconds"] == 85

    resumed = client.get(f"/api/users/{USER['id']}/current-workout").json()
    assert resumed["name"] == "Run"
    assert 90 <= resumed["elapsedSeconds"] < 120

    cleared = client.patch(f"/api/users/{USER['id']}/current-workout", json={"workout": None})
    assert cleared.json()["currentWorkout"] is None
    again = client.patch(f"/api/users/{USER['id']}/current-workout", json={"workout": None})
    assert again.status_code == 200
    assert client.get(f"/api/users/{USER['id']}/current-workout").json() is None


def test_stale_current_workout_is_dropped(client, user):
    start = int((time.time() - timedelta(hours=7).total_seconds()) * 1000)
    heartbeat = {"workout": {"name": "Run", "startTime": start, "elapsedSeconds": 3000}}
    client.patch(f"/api/users/{USER['id']}/current-workout", json=heartbeat)

    assert client.get(f"/api/users/{USER['id']}/current-workout").json() is None
    assert client.get(f"/api/users/{USER['id']}").json()["currentWorkout"] is None


def test_start_and_stop_timer(client, user):
    started = client.post(f"/api/users/{USER['id']}/current-workout/start", json={"name": "Run"})
    assert started.status_code == 200
    assert started.json()["currentWorkout"]["name"] == "Run"

    # Pretend the timer has been running for two minutes
    start = int(time.time() * 1000) - 120_000
    heartbeat = {"workout": {"name": "Run", "startTime": start, "elapsedSeconds": 115}}
    client.patch(f"/api/users/{USER['id']}/current-workout", json=heartbeat)

    stopped = client.post(f"/api/users/{USER['id']}/current-workout/stop")

    assert stopped.status_code == 201
    data = stopped.json()
    assert 120 <= data["workout"]["durationSeconds"] < 150
    assert data["user"]["currentWorkout"] is None
    assert data["user"]["exp"] == data["expGained"] >= 33


def test_future_heartbeat_is_400(client, user):
    heartbeat = {"workout": {"name": "Run", "startTime": 10**17, "elapsedSeconds": 60}}

    response = client.patch(f"/api/users/{USER['id']}/current-workout", json=heartbeat)

    assert response.status_code == 400
    assert response.json()["detail"] == "startTime is in the future"
    assert client.get(f"/api/users/{USER['id']}/current-workout").json() is None


def test_stop_after_heartbeat_ahead_of_wall_clock(client, user):
    start = int(time.time() * 1000) - 100_000
    heartbeat = {"workout": {"name": "Run", "startTime": start, "elapsedSeconds": 500}}
    client.patch(f"/api/users/{USER['id']}/current-workout", json=heartbeat)

    stopped = client.post(f"/api/users/{USER['id']}/current-workout/stop")

    assert stopped.status_code == 201
    assert 100 <= stopped.json()["workout"]["durationSeconds"] < 130


def test_stop_without_timer_is_400(client, user):
    response = client.post(f"/api/users/{USER['id']}/current-workout/stop")

    assert response.status_code == 400
    assert response.json()["detail"] == "No workout in progress"


def test_abandon_timer(client, user):
    client.post(f"/api/users/{USER['id']}/current-workout/start", json={"name": "Run"})

    response = client.post(f"/api/users/{USER['id']}/current-workout/abandon")

    assert response.status_code == 200
    assert response.json()["currentWorkout"] is None
    assert client.get(f"/api/workouts/{USER['id']}").json() == []


def test_ranks(client):
    ranks = client.get("/api/ranks").json()

    assert len(ranks) == 13
    assert ranks[0] == {"name": "E Rank", "minLevel": 1, "maxLevel": 20}
    assert ranks[-1] == {"name": "Sung Jinwo", "minLevel": 1500, "maxLevel": None}


def test_debug_levels(client):
    data = client.get("/api/debug/levels").json()

    by_level = {row["level"]: row for row in data["levels"]}
    assert by_level[200]["rank"] == "National Level"
    assert by_level[200]["expForNextLevel"] == 50_000
    assert by_level[250]["expForNextLevel"] == 100_000
    assert by_level[2000]["maxLevel"] is None
    assert len(data["allRanks"]) == 13


def test_debug_levels_hidden_outside_debug(settings):
    settings.debug = False
    app = create_app(settings, Database(settings.database_url))

    with TestClient(app) as client:
        assert client.get("/api/debug/levels").status_code == 404


@pytest.fixture
def auth_client(settings):
    settings.auth_enabled = True
    app = create_app(settings, Database(settings.database_url))
    with TestClient(app) as client:
        yield client, AuthService(settings)


def test_auth_requires_token(auth_client):
    client, _ = auth_client

    response = client.post("/api/users", json=USER)

    assert response.status_code == 401


def test_auth_rejects_bad_token(auth_client):
    client, _ = auth_client
    headers = {"Authorization": "Bearer not-a-jwt"}

    assert client.post("/api/users", json=USER, headers=headers).status_code == 401


def test_auth_checks_subject(auth_client):
    client, auth = auth_client
    own = {"Authorization": f"Bearer {auth.create_access_token(USER['id'])}"}
    other = {"Authorization": f"Bearer {auth.create_access_token('someone-else')}"}

    assert client.post("/api/users", json=USER, headers=own).status_code == 201
    assert client.get(f"/api/users/{USER['id']}", headers=other).status_code == 403
    assert client.get(f"/api/users/{USER['id']}", headers=own).status_code == 200
