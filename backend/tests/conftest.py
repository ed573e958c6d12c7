"""
Pytest fixtures for short-link tests.
Provides a controllable clock, an in-memory repository that can be told to
fail, the engine components and a FastAPI test client.
"""

import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from shortlinks.aliases import AliasValidator
from shortlinks.analytics import ClickAnalytics
from shortlinks.codes import CodeGenerator
from shortlinks.config import Settings
from shortlinks.errors import PersistenceError
from shortlinks.persistence import MemoryRepository
from shortlinks.services import ResolutionService
from shortlinks.store import MappingStore


class FakeClock:
    """Clock whose time only moves when a test advances it."""
    
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    
    def __call__(self) -> datetime:
        return self.now
    
    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FlakyRepository(MemoryRepository):
    """Memory repository whose saves fail while ``fail`` is set."""
    
    def __init__(self, state=None):
        super().__init__(state)
        self.fail = False
    
    def save(self, state):
        if self.fail:
            raise PersistenceError("simulated write failure")
        super().save(state)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repository():
    return FlakyRepository()


@pytest.fixture
def settings():
    return Settings(
        STORAGE_BACKEND="memory",
        BASE_URL="http://sho.rt",
        CLEANUP_INTERVAL_SECONDS=0,
    )


@pytest.fixture
def store(repository, clock):
    return MappingStore(
        repository,
        generator=CodeGenerator(),
        validator=AliasValidator(),
        clock=clock,
    )


@pytest.fixture
def analytics(store):
    return ClickAnalytics(store)


@pytest.fixture
def service(settings, clock, repository):
    return ResolutionService.from_settings(settings, clock=clock, repository=repository)


@pytest.fixture
def client(settings, service):
    """FastAPI test client bound to the fixture service."""
    from shortlinks.main import create_app
    
    app = create_app(settings=settings, service=service)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sample_url():
    return "https://example.com/some/long/path?query=value"
