import random

import pytest

from madlibs.services.admin_session import ADMIN_SESSIONS
from madlibs.services.game_service import GameService
from madlibs.services.game_store import GameStore, MemoryBackend

ONE_BLANK_STORY = "A [[BLANK:b1:Noun]] day"


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend):
    return GameStore(backend)


@pytest.fixture
def service(store):
    return GameService(store, rng=random.Random(1234), max_players=40)


@pytest.fixture
def active_game(service):
    """One-blank game already started."""
    game = service.create_game("T", ONE_BLANK_STORY)
    return service.start_game(game.code)


@pytest.fixture(autouse=True)
def _clear_admin_sessions():
    yield
    ADMIN_SESSIONS.clear()
