"""
Pytest configuration and fixtures for ArenaSync tests.
"""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from arena_core.container import StateContainer
from arena_core.defaults import default_state
from arena_core.models import (
    Match, MatchResult, MatchStatus, Player, ScoringConfig, Team,
)
from arena_hub.app import create_app
from arena_hub.registry import CircuitRegistry

EPOCH = 1750000000.0

SUPER_ADMIN = ('SA-ROOT', 'SUPER-SECURE-2025')
ADMIN = ('ADM-HUB', 'ADMIN-ACCESS-777')
HOST = ('HST-LOBBY', 'HOST-ENTRY-888')
MANAGER = ('MGR-7080-SAH', 'password')
PLAYER = ('PLR-5678-ROH', 'password')


class FakeClock:
    """Controllable stand-in for time.time."""

    def __init__(self, now: float = EPOCH):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(mocker):
    """Mock redis client with dict-backed get and set."""
    data = {}

    def _set(key, value):
        data[key] = value
        return True

    mock = mocker.MagicMock()
    mock.get.side_effect = data.get
    mock.set.side_effect = _set
    mock.ping.return_value = True
    return mock


@pytest.fixture
def state(clock):
    """Factory dataset pinned to the test clock."""
    return default_state(now=clock())


@pytest.fixture
def container(state, clock):
    return StateContainer(state, clock=clock)


@pytest.fixture
def registry(container, clock):
    return CircuitRegistry(container, min_roster_size=4, clock=clock)


@pytest.fixture
def sign_in(registry):
    """Open a session on the registry with one of the known credential pairs."""
    def _sign_in(credentials):
        outcome = registry.sign_in(*credentials)
        assert outcome.authorized
        return outcome.account
    return _sign_in


@pytest.fixture
def app(fake_redis, clock):
    """Create application for testing."""
    app = create_app('testing', redis_client=fake_redis, clock=clock)
    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def login(client):
    """Sign the test client in and return the response."""
    def _login(credentials):
        secure_id, key = credentials
        response = client.post('/api/v1/auth/login', json={'secureId': secure_id, 'accessKey': key})
        assert response.status_code == 200
        return response
    return _login


@pytest.fixture
def scoring():
    return ScoringConfig(placement_points={1: 12, 2: 9, 3: 8}, points_per_kill=1, max_kill_threshold=25)


@pytest.fixture
def sample_teams():
    """Three small teams for scoring tests."""
    return tuple(
        Team(
            id=f'team-{name.lower()}',
            name=name,
            tag=name[:3].upper(),
            players=tuple(Player(id=f'{name}-{i}', name=f'{name} {i}', ign=f'{name}_{i}') for i in range(4)),
        )
        for name in ('Alpha', 'Bravo', 'Charlie')
    )


def make_match(match_id, tournament_id, lines, status=MatchStatus.COMPLETED):
    """Build a match from (team_id, placement, kills, penalty) tuples."""
    return Match(
        id=match_id,
        tournament_id=tournament_id,
        status=status,
        results=tuple(
            MatchResult(team_id=team_id, placement=placement, kills=kills, penalty=penalty)
            for team_id, placement, kills, penalty in lines
        ),
    )


@pytest.fixture
def match_factory():
    return make_match
