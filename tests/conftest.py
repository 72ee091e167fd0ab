from typing import AsyncGenerator
from unittest.mock import Mock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from clipping_api.models.pydantic.authentication import User
from clipping_api.models.pydantic.polygons import Actor
from clipping_api.tasks.clipping.classifier import OverlapClassifier
from clipping_api.tasks.clipping.clipper import PolygonClipper
from clipping_api.tasks.clipping.jobs import JobRunner
from clipping_api.tasks.clipping.service import ClippingService
from clipping_api.tasks.clipping.versioning import ClippingWorkflow
from tests.fakes import (
    FakeCriteriaStore,
    FakeGeometryStore,
    FakeJobStore,
    FakeSitePolygonStore,
    FakeSiteStore,
    FakeTransactions,
)


@pytest.fixture
def geometry_store() -> FakeGeometryStore:
    return FakeGeometryStore()


@pytest.fixture
def criteria_store() -> FakeCriteriaStore:
    return FakeCriteriaStore()


@pytest.fixture
def site_polygon_store() -> FakeSitePolygonStore:
    return FakeSitePolygonStore()


@pytest.fixture
def site_store() -> FakeSiteStore:
    return FakeSiteStore()


@pytest.fixture
def job_store(transactions) -> FakeJobStore:
    return FakeJobStore(transactions)


@pytest.fixture
def transactions() -> FakeTransactions:
    return FakeTransactions()


@pytest.fixture
def logger() -> Mock:
    return Mock()


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id=7, full_name="Jane Doe")


@pytest.fixture
def classifier(criteria_store, logger) -> OverlapClassifier:
    return OverlapClassifier(criteria_store, logger=logger)


@pytest.fixture
def clipper(classifier, geometry_store, logger) -> PolygonClipper:
    return PolygonClipper(classifier, geometry_store, logger=logger)


@pytest.fixture
def workflow(
    classifier,
    clipper,
    geometry_store,
    criteria_store,
    site_polygon_store,
    transactions,
    logger,
) -> ClippingWorkflow:
    return ClippingWorkflow(
        classifier,
        clipper,
        geometry_store,
        criteria_store,
        site_polygon_store,
        transactions,
        logger=logger,
    )


@pytest.fixture
def service(
    classifier, clipper, workflow, site_store, site_polygon_store, job_store, logger
) -> ClippingService:
    return ClippingService(
        classifier,
        clipper,
        workflow,
        site_store,
        site_polygon_store,
        job_store,
        logger=logger,
    )


async def get_user_mocked() -> User:
    return User(id=7, first_name="Jane", last_name="Doe", role="USER")


@pytest_asyncio.fixture
async def async_client(service, job_store) -> AsyncGenerator[AsyncClient, None]:
    """Async test client backed by in-memory stores."""
    from clipping_api.authentication.token import get_user
    from clipping_api.main import app
    from clipping_api.routes.jobs import get_job_store
    from clipping_api.routes.polygon_clipping import (
        get_clipping_service,
        get_job_runner,
    )

    async def service_override() -> ClippingService:
        return service

    async def job_store_override():
        return job_store

    async def job_runner_override() -> JobRunner:
        return JobRunner(use_engine=False)

    app.dependency_overrides[get_user] = get_user_mocked
    app.dependency_overrides[get_clipping_service] = service_override
    app.dependency_overrides[get_job_store] = job_store_override
    app.dependency_overrides[get_job_runner] = job_runner_override

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test", trust_env=False
    ) as client:
        yield client

    app.dependency_overrides = {}
