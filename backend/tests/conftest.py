import pytest
from fastapi.testclient import TestClient

from fitness_rpg.config import Settings
from fitness_rpg.database import Database
from fitness_rpg.main import create_app
from fitness_rpg.models import User
from fitness_rpg.services.leveling import level_for_cumulative_exp
from fitness_rpg.services.locks import UserLocks

T0 = 1_760_000_000_000  # epoch ms


class FakeClock:
    """Epoch-millisecond clock the tests move by hand."""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += int(seconds * 1000)


@pytest.fixture
def database():
    database = Database("sqlite://").open()
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def session(database):
    with database.session() as db:
        yield db


@pytest.fixture
def locks():
    return UserLocks()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_user(session):
    def _make(user_id="user-1", exp=0, **fields):
        user = User(
            id=user_id,
            email=f"{user_id}@example.com",
            username=fields.pop("username", "Hunter"),
            exp=exp,
            level=level_for_cumulative_exp(exp),
            total_workout_seconds=fields.pop("total_workout_seconds", 0),
            **fields,
        )
        session.add(user)
        session.commit()
        return user

    return _make


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        log_dir="",
        debug=True,
        auth_enabled=False,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, Database(settings.database_url))
    with TestClient(app) as test_client:
        yield test_client
