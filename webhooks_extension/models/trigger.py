"""Event listener trigger models

A webhook has no record of its own: it lives as two or three triggers on the
shared event listener, and is rebuilt from the params and interceptor
headers of its push trigger.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

TRIGGERS_API_VERSION = "v1alpha1"

# Pipeline trigger params
PARAM_TARGET_NAMESPACE = "webhooks-tekton-target-namespace"
PARAM_SERVICE_ACCOUNT = "webhooks-tekton-service-account"
PARAM_DOCKER_REGISTRY = "webhooks-tekton-docker-registry"
PARAM_GIT_SERVER = "webhooks-tekton-git-server"
PARAM_GIT_ORG = "webhooks-tekton-git-org"
PARAM_GIT_REPO = "webhooks-tekton-git-repo"

# Monitor trigger params
PARAM_GIT_SECRET_NAME = "gitsecretname"
PARAM_GIT_SECRET_KEY_NAME = "gitsecretkeyname"
PARAM_DASHBOARD_URL = "dashboardurl"

# Interceptor headers read by the validator service
HEADER_TRIGGER_NAME = "Wext-Trigger-Name"
HEADER_REPOSITORY_URL = "Wext-Repository-Url"
HEADER_INCOMING_EVENT = "Wext-Incoming-Event"
HEADER_INCOMING_ACTIONS = "Wext-Incoming-Actions"
HEADER_SECRET_NAME = "Wext-Secret-Name"

PULL_REQUEST_ACTIONS = "opened,reopened,synchronize"


class Param(BaseModel):
    name: str
    value: str = ""


class ResourceRef(BaseModel):
    name: str
    apiversion: str = TRIGGERS_API_VERSION


class ObjectReference(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default="v1", alias="apiVersion")
    kind: str = "Service"
    name: str
    namespace: str = ""


class Interceptor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    header: list[Param] = []
    object_ref: Optional[ObjectReference] = Field(default=None, alias="objectRef")


class EventListenerTrigger(BaseModel):
    """One binding+template+interceptor entry of the event listener"""
    name: str
    binding: ResourceRef
    template: ResourceRef
    params: list[Param] = []
    interceptor: Optional[Interceptor] = None

    def param(self, name: str) -> Optional[str]:
        for p in self.params:
            if p.name == name:
                return p.value
        return None

    def header(self, name: str) -> Optional[str]:
        if self.interceptor is None:
            return None
        for h in self.interceptor.header:
            if h.name == name:
                return h.value
        return None

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
