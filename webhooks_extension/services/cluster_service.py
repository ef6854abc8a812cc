"""Cluster service - thin async wrapper over the Kubernetes API.

Every resource the extension touches lives in the cluster: the shared event
listener and its trigger templates/bindings, credential secrets, the ingress
or route exposing the listener, and pipeline runs. Calls go through the
official ``kubernetes`` client in a worker thread, results come back as plain
dicts, and API failures are raised as ``ClusterError``.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

logger = logging.getLogger(__name__)

TRIGGERS_GROUP = "triggers.tekton.dev"
TRIGGERS_VERSION = "v1alpha1"
PIPELINES_GROUP = "tekton.dev"
PIPELINES_VERSION = "v1alpha1"
ROUTES_GROUP = "route.openshift.io"
ROUTES_VERSION = "v1"


class ClusterError(Exception):
    """A failed call against the cluster API"""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @classmethod
    def from_api_exception(cls, e: ApiException) -> "ClusterError":
        message = e.reason or "cluster API error"
        if e.body:
            try:
                message = json.loads(e.body).get("message", message)
            except (ValueError, AttributeError):
                message = str(e.body)
        return cls(e.status or 500, message)


class ClusterService:
    """Service for Kubernetes, Tekton and OpenShift API operations"""

    def __init__(self):
        self._api_client: Optional[client.ApiClient] = None

    @property
    def api_client(self) -> client.ApiClient:
        """Kubernetes API client, loading in-cluster config first"""
        if self._api_client is None:
            try:
                config.load_incluster_config()
                logger.info("Loaded in-cluster Kubernetes configuration")
            except ConfigException:
                config.load_kube_config()
                logger.info("Loaded Kubernetes configuration from kubeconfig")
            self._api_client = client.ApiClient()
        return self._api_client

    @property
    def core(self) -> client.CoreV1Api:
        return client.CoreV1Api(self.api_client)

    @property
    def networking(self) -> client.NetworkingV1Api:
        return client.NetworkingV1Api(self.api_client)

    @property
    def custom(self) -> client.CustomObjectsApi:
        return client.CustomObjectsApi(self.api_client)

    async def _call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        try:
            result = await asyncio.to_thread(fn, *args, **kwargs)
        except ApiException as e:
            raise ClusterError.from_api_exception(e) from e
        return self.api_client.sanitize_for_serialization(result)

    # =========================================================================
    # Event listener, trigger templates and bindings
    # =========================================================================

    async def get_event_listener(self, namespace: str, name: str) -> dict:
        return await self._call(
            self.custom.get_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "eventlisteners", name,
        )

    async def create_event_listener(self, namespace: str, body: dict) -> dict:
        return await self._call(
            self.custom.create_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "eventlisteners", body,
        )

    async def update_event_listener(self, namespace: str, name: str, body: dict) -> dict:
        return await self._call(
            self.custom.replace_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "eventlisteners", name, body,
        )

    async def delete_event_listener(self, namespace: str, name: str) -> None:
        await self._call(
            self.custom.delete_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "eventlisteners", name,
        )

    async def get_trigger_template(self, namespace: str, name: str) -> dict:
        return await self._call(
            self.custom.get_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "triggertemplates", name,
        )

    async def get_trigger_binding(self, namespace: str, name: str) -> dict:
        return await self._call(
            self.custom.get_namespaced_custom_object,
            TRIGGERS_GROUP, TRIGGERS_VERSION, namespace, "triggerbindings", name,
        )

    # =========================================================================
    # Pipeline runs
    # =========================================================================

    async def list_pipeline_runs(self, namespace: str, label_selector: str = "") -> list[dict]:
        result = await self._call(
            self.custom.list_namespaced_custom_object,
            PIPELINES_GROUP, PIPELINES_VERSION, namespace, "pipelineruns",
            label_selector=label_selector,
        )
        return result.get("items", [])

    async def delete_pipeline_run(self, namespace: str, name: str) -> None:
        await self._call(
            self.custom.delete_namespaced_custom_object,
            PIPELINES_GROUP, PIPELINES_VERSION, namespace, "pipelineruns", name,
        )

    # =========================================================================
    # Secrets and services
    # =========================================================================

    async def get_secret(self, namespace: str, name: str) -> dict:
        return await self._call(self.core.read_namespaced_secret, name, namespace)

    async def list_secrets(self, namespace: str) -> list[dict]:
        result = await self._call(self.core.list_namespaced_secret, namespace)
        return result.get("items", [])

    async def create_secret(self, namespace: str, body: dict) -> dict:
        return await self._call(self.core.create_namespaced_secret, namespace, body)

    async def delete_secret(self, namespace: str, name: str) -> None:
        await self._call(self.core.delete_namespaced_secret, name, namespace)

    async def list_services(self, namespace: str, label_selector: str = "") -> list[dict]:
        result = await self._call(
            self.core.list_namespaced_service, namespace, label_selector=label_selector
        )
        return result.get("items", [])

    # =========================================================================
    # Ingresses and routes
    # =========================================================================

    async def create_ingress(self, namespace: str, body: dict) -> dict:
        return await self._call(self.networking.create_namespaced_ingress, namespace, body)

    async def delete_ingress(self, namespace: str, name: str) -> None:
        await self._call(self.networking.delete_namespaced_ingress, name, namespace)

    async def create_route(self, namespace: str, body: dict) -> dict:
        return await self._call(
            self.custom.create_namespaced_custom_object,
            ROUTES_GROUP, ROUTES_VERSION, namespace, "routes", body,
        )

    async def delete_route(self, namespace: str, name: str) -> None:
        await self._call(
            self.custom.delete_namespaced_custom_object,
            ROUTES_GROUP, ROUTES_VERSION, namespace, "routes", name,
        )


# Singleton instance
cluster_service = ClusterService()
