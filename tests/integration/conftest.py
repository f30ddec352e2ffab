"""
Integration test fixtures for the read model.

The engine runs against fakeredis, which implements the Redis commands the
read model uses (sets, hashes, SCAN, SORT BY, MULTI/EXEC, EXPIRE).
"""

import pytest
from fakeredis.aioredis import FakeRedis

from readmodel import EntityTypeDef, IndexField, ReadModel, ReadModelSettings, SortField

CAR = EntityTypeDef(
    id_field="id",
    indexed_fields=(
        IndexField("priceRange"),
        IndexField("year", get_value=lambda car: car.get("yearOfManufacture")),
        IndexField("featureId", get_value=lambda car: car.get("featureIds")),
    ),
    sort_fields=(
        SortField("make", alpha=True),
        SortField("price"),
    ),
    default_sort_field="make",
)


@pytest.fixture
async def redis_client():
    """Fresh fake Redis per test."""
    client = FakeRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.aclose()


@pytest.fixture
def settings():
    """Settings used by the model fixture."""
    return ReadModelSettings(page_size=10, temp_set_expire_seconds=5)


@pytest.fixture
def model(redis_client, settings):
    """ReadModel on the fake Redis with the car type registered."""
    read_model = ReadModel(settings, client=redis_client)
    read_model.register("car", CAR)
    return read_model
