"""Services module"""

from webhooks_extension.services.cluster_service import cluster_service
from webhooks_extension.services.credential_service import credential_service
from webhooks_extension.services.github_service import github_service
from webhooks_extension.services.network_service import network_service
from webhooks_extension.services.webhook_service import webhook_service

__all__ = [
    "cluster_service",
    "credential_service",
    "github_service",
    "network_service",
    "webhook_service",
]
