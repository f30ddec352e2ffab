"""
E2E test fixtures for the read model.

These tests require a running Redis server. Point READMODEL_REDIS_URL at it
(default redis://localhost:6379/15); the database is flushed before and
after every test.
"""

import os

import pytest

from readmodel import ReadModel, ReadModelSettings

E2E_ENABLED = os.environ.get("READMODEL_E2E_TESTS", "0") == "1"


@pytest.fixture
def e2e_settings() -> ReadModelSettings:
    """Settings for the Redis under test."""
    return ReadModelSettings(
        redis_url=os.environ.get("READMODEL_REDIS_URL", "redis://localhost:6379/15"),
        temp_set_expire_seconds=5,
    )


@pytest.fixture
async def live_model(e2e_settings):
    """ReadModel owning its own connection to a flushed database."""
    if not E2E_ENABLED:
        pytest.skip("E2E tests disabled")
    model = ReadModel(e2e_settings)
    await model.client.flushdb()
    yield model
    await model.client.flushdb()
    await model.quit()
