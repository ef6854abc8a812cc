"""Shared test fixtures for Tekton Webhooks Extension tests"""

import os
from random import Random
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

# Set test environment before importing app
os.environ["INSTALLED_NAMESPACE"] = "tekton-pipelines"
os.environ["WEBHOOK_CALLBACK_URL"] = "https://webhooks.example.com"
os.environ["PLATFORM"] = ""
os.environ["WEB_RESOURCES_DIR"] = ""
os.environ["SSL_VERIFICATION_ENABLED"] = "true"

from tests.factories import (  # noqa: E402
    NAMESPACE,
    PIPELINE,
    create_credential_secret,
    create_trigger_binding,
    create_trigger_template,
)
from tests.fakes import FakeClusterService  # noqa: E402


# =============================================================================
# Cluster and Service Fixtures
# =============================================================================

@pytest.fixture
def fake_cluster() -> FakeClusterService:
    """In-memory cluster with no resources"""
    return FakeClusterService()


@pytest.fixture
def pipeline_resources(fake_cluster) -> FakeClusterService:
    """Trigger template and the push/pull request bindings for the test pipeline"""
    fake_cluster.add("triggertemplates", NAMESPACE, create_trigger_template())
    fake_cluster.add("triggerbindings", NAMESPACE, create_trigger_binding(f"{PIPELINE}-push-binding"))
    fake_cluster.add("triggerbindings", NAMESPACE, create_trigger_binding(f"{PIPELINE}-pullrequest-binding"))
    fake_cluster.add("secrets", NAMESPACE, create_credential_secret())
    return fake_cluster


@pytest.fixture
def mock_github():
    """Mock GitHub hub client"""
    mock = MagicMock()
    mock.subscribe = AsyncMock()
    mock.unsubscribe = AsyncMock()
    return mock


@pytest.fixture
def credential_svc(fake_cluster):
    from webhooks_extension.services.credential_service import CredentialService
    return CredentialService(cluster=fake_cluster, rng=Random(42))


@pytest.fixture
def network_svc(fake_cluster):
    from webhooks_extension.services.network_service import NetworkService
    return NetworkService(cluster=fake_cluster)


@pytest.fixture
def webhook_svc(fake_cluster, mock_github, network_svc, credential_svc):
    from webhooks_extension.services.webhook_service import WebhookService
    return WebhookService(
        cluster=fake_cluster,
        github=mock_github,
        network=network_svc,
        credentials=credential_svc,
        poll_interval=0,
    )


@pytest.fixture
def openshift(monkeypatch):
    """Run with the OpenShift platform configured"""
    from webhooks_extension.config import settings
    monkeypatch.setattr(settings, "platform", "openshift")


# =============================================================================
# Application and Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def app(webhook_svc, credential_svc):
    """Get the FastAPI application wired to the in-memory cluster"""
    from webhooks_extension.main import app as fastapi_app

    with patch('webhooks_extension.routes.webhooks.webhook_service', webhook_svc), \
         patch('webhooks_extension.routes.credentials.credential_service', credential_svc):
        yield fastapi_app


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator:
    """Create async HTTP client for testing"""
    from httpx import AsyncClient, ASGITransport

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def pytest_configure(config):
    """Configure pytest markers"""
    config.addinivalue_line("markers", "unit: Service-level tests against the in-memory cluster")
