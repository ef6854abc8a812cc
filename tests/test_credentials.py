"""Credential Route Tests

Request/response contract tests for /webhooks/credentials.
"""

import pytest

from tests.factories import NAMESPACE, create_credential_secret
from webhooks_extension.models.credential import is_credential
from webhooks_extension.services.cluster_service import ClusterError


class TestCredentialCreation:
    """Test POST /webhooks/credentials"""

    @pytest.mark.asyncio
    async def test_create_credential(self, test_client, fake_cluster):
        """Create stores an opaque secret and returns its location"""
        response = await test_client.post(
            "/webhooks/credentials",
            json={"name": "cred", "accesstoken": "access"}
        )

        assert response.status_code == 201
        assert response.headers["content-location"] == "/webhooks/credentials/cred"
        secret = fake_cluster.get("secrets", NAMESPACE, "cred")
        assert secret["type"] == "Opaque"
        assert is_credential(secret)

    @pytest.mark.asyncio
    async def test_create_missing_token(self, test_client, fake_cluster):
        response = await test_client.post("/webhooks/credentials", json={"name": "cred"})

        assert response.status_code == 400
        assert response.text == "Invalid credential request value: AccessToken cannot be empty"
        assert fake_cluster.get("secrets", NAMESPACE, "cred") is None

    @pytest.mark.asyncio
    async def test_create_missing_name(self, test_client):
        response = await test_client.post("/webhooks/credentials", json={"accesstoken": "access"})

        assert response.status_code == 400
        assert response.text == "Invalid credential request value: Name cannot be empty"

    @pytest.mark.asyncio
    async def test_create_existing_credential(self, test_client, fake_cluster):
        """Cluster rejections on create are reported as 400"""
        fake_cluster.add("secrets", NAMESPACE, create_credential_secret(name="cred"))

        response = await test_client.post(
            "/webhooks/credentials",
            json={"name": "cred", "accesstoken": "access"}
        )

        assert response.status_code == 400


class TestCredentialListing:
    """Test GET /webhooks/credentials"""

    @pytest.mark.asyncio
    async def test_list_only_credentials(self, test_client, fake_cluster):
        """Secrets without both token keys are not listed"""
        fake_cluster.add("secrets", NAMESPACE, create_credential_secret(name="cred"))
        fake_cluster.add("secrets", NAMESPACE, create_credential_secret(name="partial", secret_token=None))

        response = await test_client.get("/webhooks/credentials")

        assert response.status_code == 200
        assert response.json() == [
            {"name": "cred", "accesstoken": "access-token", "secrettoken": "secret-token"}
        ]

    @pytest.mark.asyncio
    async def test_list_failure(self, test_client, fake_cluster):
        fake_cluster.errors["list_secrets"] = ClusterError(403, "forbidden")

        response = await test_client.get("/webhooks/credentials")

        assert response.status_code == 500
        assert response.text == "forbidden"


class TestCredentialDeletion:
    """Test DELETE /webhooks/credentials/{name}"""

    @pytest.mark.asyncio
    async def test_delete_credential(self, test_client, fake_cluster):
        fake_cluster.add("secrets", NAMESPACE, create_credential_secret(name="cred"))

        response = await test_client.delete("/webhooks/credentials/cred")

        assert response.status_code == 204
        assert fake_cluster.get("secrets", NAMESPACE, "cred") is None

    @pytest.mark.asyncio
    async def test_delete_missing_credential(self, test_client):
        response = await test_client.delete("/webhooks/credentials/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_failure(self, test_client, fake_cluster):
        fake_cluster.add("secrets", NAMESPACE, create_credential_secret(name="cred"))
        fake_cluster.errors["delete_secret"] = ClusterError(500, "etcd unavailable")

        response = await test_client.delete("/webhooks/credentials/cred")

        assert response.status_code == 500


class TestCredentialService:
    """Test the secret token generated for new credentials"""

    @pytest.mark.asyncio
    async def test_generated_secret_token(self, credential_svc):
        from webhooks_extension.models import CredentialRequest

        credential = await credential_svc.create_credential(
            CredentialRequest(name="cred", accesstoken="access")
        )

        assert len(credential.secrettoken) == 20
        assert credential.secrettoken.isalnum()
