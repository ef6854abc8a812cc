"""Models package - Pydantic models for API request/response"""

from webhooks_extension.models.webhook import Webhook
from webhooks_extension.models.credential import (
    Credential,
    CredentialRequest,
    is_credential,
)
from webhooks_extension.models.trigger import (
    EventListenerTrigger,
    Interceptor,
    ObjectReference,
    Param,
    ResourceRef,
)

__all__ = [
    # Webhook
    "Webhook",
    # Credential
    "Credential",
    "CredentialRequest",
    "is_credential",
    # Trigger
    "EventListenerTrigger",
    "Interceptor",
    "ObjectReference",
    "Param",
    "ResourceRef",
]
