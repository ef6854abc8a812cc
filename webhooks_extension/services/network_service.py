"""Network service - exposes the event listener outside the cluster.

On OpenShift the generated listener service is published with a Route,
elsewhere with an Ingress whose host is the configured callback URL.
"""

import logging

import httpx

from webhooks_extension.config import settings
from webhooks_extension.services.cluster_service import ClusterError, ClusterService, cluster_service

logger = logging.getLogger(__name__)

EVENT_LISTENER_PORT = 8080
DEFAULT_DASHBOARD_URL = "http://localhost:9097/"
DASHBOARD_LABEL = "app=tekton-dashboard"
OPENSHIFT_DASHBOARD_LABEL = "app=tekton-dashboard-internal"


class NetworkService:
    """Creates and deletes the ingress or route in front of the event listener"""

    def __init__(self, cluster: ClusterService = cluster_service):
        self.cluster = cluster

    @property
    def namespace(self) -> str:
        return settings.installed_namespace

    def build_ingress(self, service_name: str) -> dict:
        callback_host = settings.webhook_callback_url
        for prefix in ("http://", "https://"):
            if callback_host.startswith(prefix):
                callback_host = callback_host[len(prefix):]

        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "Ingress",
            "metadata": {"name": service_name, "namespace": self.namespace},
            "spec": {
                "rules": [{
                    "host": callback_host,
                    "http": {
                        "paths": [{
                            "path": "/",
                            "pathType": "Prefix",
                            "backend": {
                                "service": {
                                    "name": service_name,
                                    "port": {"number": EVENT_LISTENER_PORT},
                                },
                            },
                        }],
                    },
                }],
            },
        }

    def build_route(self, service_name: str) -> dict:
        return {
            "apiVersion": "route.openshift.io/v1",
            "kind": "Route",
            "metadata": {"name": service_name, "namespace": self.namespace},
            "spec": {"to": {"kind": "Service", "name": service_name}},
        }

    async def create(self, service_name: str) -> None:
        """Publish the listener's generated service.

        Raises:
            ClusterError: If the ingress or route cannot be created
        """
        if settings.is_openshift:
            await self.cluster.create_route(self.namespace, self.build_route(service_name))
            logger.info(f"Route {service_name} has been created")
        else:
            await self.cluster.create_ingress(self.namespace, self.build_ingress(service_name))
            logger.info(f"Ingress {service_name} has been created")

    async def delete(self, service_name: str) -> None:
        """Remove the ingress or route named after the listener's service.

        Raises:
            ClusterError: If the ingress or route cannot be deleted
        """
        if settings.is_openshift:
            await self.cluster.delete_route(self.namespace, service_name)
            logger.info(f"Route {service_name} has been deleted")
        else:
            await self.cluster.delete_ingress(self.namespace, service_name)
            logger.info(f"Ingress {service_name} has been deleted")

    async def get_dashboard_url(self) -> str:
        """Find the URL of the Tekton dashboard for pipeline run monitoring.

        Falls back to the local default when no dashboard service exists, and
        to the dashboard's endpoints URL when the dashboard does not answer.
        """
        label = OPENSHIFT_DASHBOARD_LABEL if settings.is_openshift else DASHBOARD_LABEL
        try:
            services = await self.cluster.list_services(self.namespace, label_selector=label)
        except ClusterError as e:
            logger.error(f"Could not find the dashboard's service: {e}")
            return DEFAULT_DASHBOARD_URL

        if not services:
            logger.error("Could not find the dashboard's service")
            return DEFAULT_DASHBOARD_URL

        service = services[0]
        try:
            port = service["spec"]["ports"][0]
            url = (
                f"{port.get('name', 'http')}://{service['metadata']['name']}:{port['port']}"
                f"/v1/namespaces/{self.namespace}/endpoints"
            )
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Dashboard service has no usable port: {e!r}")
            return DEFAULT_DASHBOARD_URL
        logger.debug(f"Using dashboard endpoints URL: {url}")

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=10.0)
        except httpx.HTTPError as e:
            logger.error(f"Error occurred when hitting the endpoints REST endpoint: {e}")
            return url

        if response.status_code != 200:
            logger.error(
                f"Return code was not 200 when hitting the endpoints REST endpoint, "
                f"code returned was: {response.status_code}"
            )
            return url

        try:
            return response.json()[0]["url"]
        except (ValueError, LookupError, TypeError) as e:
            logger.error(f"Unexpected response from the endpoints REST endpoint: {e}")
            return url


# Singleton instance
network_service = NetworkService()
