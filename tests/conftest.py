"""
Shared test fixtures and configuration for the MeteoSwiss test suite.
"""

import tempfile
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from aioresponses import aioresponses

from meteoswiss.cache import HttpCache
from meteoswiss.config import AppConfig, DataConfig, HttpConfig
from meteoswiss.http import HttpClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeClock:
    """Manually advanced time source for cache and registry tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Session transport recording how often it was closed."""

    def __init__(self, fail_on_close: bool = False) -> None:
        self.close_calls = 0
        self.fail_on_close = fail_on_close

    async def close(self) -> None:
        self.close_calls += 1
        if self.fail_on_close:
            raise RuntimeError("transport already gone")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def http_cache(clock: FakeClock) -> HttpCache:
    return HttpCache(clock=clock)


@pytest.fixture
def http_config() -> HttpConfig:
    """HTTP configuration with fast retries for tests."""
    return HttpConfig(retries=2, retry_delay=0.0, timeout=2.0)


@pytest.fixture
async def http_client(
    http_cache: HttpCache, http_config: HttpConfig
) -> AsyncGenerator[HttpClient, None]:
    async with HttpClient(http_cache, http_config) as client:
        yield client


@pytest.fixture
def mock_aiohttp() -> Generator[aioresponses, None, None]:
    """Intercept aiohttp requests."""
    with aioresponses() as mocked:
        yield mocked


@pytest.fixture
def fixture_config() -> AppConfig:
    """Application configuration serving data from the test fixtures."""
    return AppConfig(
        data=DataConfig(use_test_fixtures=True, fixtures_dir=FIXTURES_DIR),
        http=HttpConfig(retries=0, retry_delay=0.0),
    )
