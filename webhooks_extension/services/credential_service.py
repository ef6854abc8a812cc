"""Credential service - Git access tokens stored as opaque secrets"""

import logging
from random import Random
from typing import Optional

from webhooks_extension.config import settings
from webhooks_extension.models.credential import Credential, CredentialRequest, is_credential
from webhooks_extension.services.cluster_service import ClusterError, ClusterService, cluster_service
from webhooks_extension.utils import get_random_token

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """Credential operation failure carrying the HTTP status to report"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CredentialService:
    """Service for credential CRUD in the installed namespace"""

    def __init__(self, cluster: ClusterService = cluster_service, rng: Optional[Random] = None):
        self.cluster = cluster
        self.rng = rng

    @property
    def namespace(self) -> str:
        return settings.installed_namespace

    async def create_credential(self, request: CredentialRequest) -> Credential:
        error = request.validation_error()
        if error:
            raise CredentialError(f"Invalid credential request value: {error}", 400)

        credential = Credential(
            name=request.name,
            accesstoken=request.accesstoken,
            secrettoken=get_random_token(self.rng),
        )
        try:
            await self.cluster.create_secret(self.namespace, credential.to_secret(self.namespace))
        except ClusterError as e:
            raise CredentialError(e.message, 400) from e

        logger.info(f"Created credential {credential.name} in {self.namespace}")
        return credential

    async def get_all_credentials(self) -> list[Credential]:
        try:
            secrets = await self.cluster.list_secrets(self.namespace)
        except ClusterError as e:
            raise CredentialError(e.message, 500) from e
        return [Credential.from_secret(s) for s in secrets if is_credential(s)]

    async def delete_credential(self, name: str) -> None:
        try:
            await self.cluster.delete_secret(self.namespace, name)
        except ClusterError as e:
            status_code = 404 if e.is_not_found else 500
            raise CredentialError(e.message, status_code) from e
        logger.info(f"Deleted credential {name} from {self.namespace}")

    async def get_secret_tokens(self, name: str) -> tuple[str, str]:
        """Get (access token, secret token) for the named credential.

        Raises:
            CredentialError: If the secret is missing or lacks either token
        """
        try:
            secret = await self.cluster.get_secret(self.namespace, name)
        except ClusterError as e:
            raise CredentialError(f"error getting secret {name}: {e.message}", e.status_code) from e

        if not is_credential(secret):
            raise CredentialError(f"secret {name} is missing accessToken or secretToken", 500)
        credential = Credential.from_secret(secret)
        return credential.accesstoken, credential.secrettoken


# Singleton instance
credential_service = CredentialService()
