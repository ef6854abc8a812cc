"""Webhook service - registers webhooks as triggers on the shared event listener.

All webhooks share one EventListener in the installed namespace. Each webhook
contributes a push trigger, a pull request trigger and, when the pipeline
ships a monitor binding, a monitor trigger, all named ``<webhook>-<postfix>``.
Creating or deleting a webhook is a read-modify-write of that listener, so
both run under a single lock.
"""

import asyncio
import logging
from typing import Optional

from webhooks_extension.config import settings
from webhooks_extension.models.credential import ACCESS_TOKEN_KEY
from webhooks_extension.models.trigger import (
    EventListenerTrigger,
    Interceptor,
    ObjectReference,
    Param,
    ResourceRef,
    HEADER_INCOMING_ACTIONS,
    HEADER_INCOMING_EVENT,
    HEADER_REPOSITORY_URL,
    HEADER_SECRET_NAME,
    HEADER_TRIGGER_NAME,
    PARAM_DASHBOARD_URL,
    PARAM_DOCKER_REGISTRY,
    PARAM_GIT_ORG,
    PARAM_GIT_REPO,
    PARAM_GIT_SECRET_KEY_NAME,
    PARAM_GIT_SECRET_NAME,
    PARAM_GIT_SERVER,
    PARAM_SERVICE_ACCOUNT,
    PARAM_TARGET_NAMESPACE,
    PULL_REQUEST_ACTIONS,
)
from webhooks_extension.models.webhook import Webhook
from webhooks_extension.services.cluster_service import ClusterError, ClusterService, cluster_service
from webhooks_extension.services.credential_service import (
    CredentialError,
    CredentialService,
    credential_service,
)
from webhooks_extension.services.github_service import GitHubHubError, GitHubService, github_service
from webhooks_extension.services.network_service import NetworkService, network_service
from webhooks_extension.utils import (
    InvalidGitURLError,
    get_git_values,
    normalize_repo_url,
    sanitize_git_url,
)

logger = logging.getLogger(__name__)

EVENT_LISTENER_NAME = "tekton-webhooks-eventlistener"
EVENT_LISTENER_SERVICE_ACCOUNT = "tekton-webhooks-extension-eventlistener"
VALIDATOR_SERVICE_NAME = "tekton-webhooks-extension-validator"

# Resources the pipeline must provide: <pipeline>-<postfix>
TEMPLATE_POSTFIX = "template"
PUSH_BINDING_POSTFIX = "push-binding"
PULL_REQUEST_BINDING_POSTFIX = "pullrequest-binding"
MONITOR_BINDING_POSTFIX = "binding"

# Triggers added per webhook: <webhook>-<postfix>
PUSH_TRIGGER_POSTFIX = "push-event"
PULL_REQUEST_TRIGGER_POSTFIX = "pullrequest-event"
MONITOR_TRIGGER_POSTFIX = "monitor-task"

PUSH_EVENT = "push"
PULL_REQUEST_EVENT = "pull_request"

STATUS_POLL_INTERVAL = 0.1


class WebhookError(Exception):
    """Webhook operation failure carrying the HTTP status to report"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def webhook_from_trigger(trigger: EventListenerTrigger) -> Webhook:
    """Rebuild a webhook from one of its triggers.

    Raises:
        ValueError: If the trigger lacks the params or headers a webhook needs
    """
    values = {
        "namespace": trigger.param(PARAM_TARGET_NAMESPACE),
        "serviceaccount": trigger.param(PARAM_SERVICE_ACCOUNT),
        "dockerregistry": trigger.param(PARAM_DOCKER_REGISTRY),
        "gitrepositoryurl": trigger.header(HEADER_REPOSITORY_URL),
        "accesstoken": trigger.header(HEADER_SECRET_NAME),
    }
    missing = [key for key, value in values.items() if value is None]
    if missing:
        raise ValueError(f"trigger {trigger.name} is missing {', '.join(missing)}")

    return Webhook(
        name=webhook_name_from_trigger(trigger.name),
        pipeline=pipeline_name_from_trigger(trigger),
        **values,
    )


def webhook_name_from_trigger(trigger_name: str) -> str:
    """Webhook names cannot contain hyphens, so the name is the first segment"""
    return trigger_name.split("-", 1)[0]


def pipeline_name_from_trigger(trigger: EventListenerTrigger) -> str:
    suffix = f"-{TEMPLATE_POSTFIX}"
    name = trigger.template.name
    return name[:-len(suffix)] if name.endswith(suffix) else name


def filter_webhooks_by_repo(webhooks: list[Webhook], repo_url: str) -> list[Webhook]:
    key = normalize_repo_url(repo_url)
    return [w for w in webhooks if normalize_repo_url(w.gitrepositoryurl) == key]


def find_webhook_by_name(webhooks: list[Webhook], name: str) -> Optional[Webhook]:
    for webhook in webhooks:
        if webhook.name == name:
            return webhook
    return None


class WebhookService:
    """Service for webhook registration against the shared event listener"""

    def __init__(
        self,
        cluster: ClusterService = cluster_service,
        github: GitHubService = github_service,
        network: NetworkService = network_service,
        credentials: CredentialService = credential_service,
        poll_interval: float = STATUS_POLL_INTERVAL,
    ):
        self.cluster = cluster
        self.github = github
        self.network = network
        self.credentials = credentials
        self.poll_interval = poll_interval
        self._lock = asyncio.Lock()

    @property
    def namespace(self) -> str:
        return settings.installed_namespace

    # =========================================================================
    # Event listener
    # =========================================================================

    def base_event_listener(self) -> dict:
        return {
            "apiVersion": "triggers.tekton.dev/v1alpha1",
            "kind": "EventListener",
            "metadata": {"name": EVENT_LISTENER_NAME, "namespace": self.namespace},
            "spec": {"serviceAccountName": EVENT_LISTENER_SERVICE_ACCOUNT, "triggers": []},
        }

    async def get_event_listener(self) -> Optional[dict]:
        """Get the shared event listener, or None when it does not exist yet"""
        try:
            return await self.cluster.get_event_listener(self.namespace, EVENT_LISTENER_NAME)
        except ClusterError as e:
            if e.is_not_found:
                return None
            raise WebhookError(f"error getting the event listener: {e.message}", 500) from e

    @staticmethod
    def get_triggers(event_listener: dict) -> list[EventListenerTrigger]:
        raw = (event_listener.get("spec") or {}).get("triggers") or []
        return [EventListenerTrigger.model_validate(t) for t in raw]

    @staticmethod
    def get_webhooks(triggers: list[EventListenerTrigger]) -> list[Webhook]:
        """Rebuild webhooks from their push triggers"""
        webhooks = []
        for trigger in triggers:
            if not trigger.name.endswith(f"-{PUSH_TRIGGER_POSTFIX}"):
                continue
            try:
                webhooks.append(webhook_from_trigger(trigger))
            except ValueError as e:
                raise WebhookError(str(e), 500) from e
        return webhooks

    async def wait_for_generated_name(self) -> str:
        """Poll the event listener until its backing service has been generated"""
        while True:
            event_listener = await self.cluster.get_event_listener(self.namespace, EVENT_LISTENER_NAME)
            status = event_listener.get("status") or {}
            name = (status.get("configuration") or {}).get("generatedName")
            if name:
                return name
            await asyncio.sleep(self.poll_interval)

    # =========================================================================
    # Triggers
    # =========================================================================

    def new_trigger(
        self,
        name: str,
        binding: str,
        template: str,
        repo_url: str,
        event: str,
        secret_name: str,
        params: list[Param],
    ) -> EventListenerTrigger:
        headers = [
            Param(name=HEADER_TRIGGER_NAME, value=name),
            Param(name=HEADER_REPOSITORY_URL, value=repo_url),
            Param(name=HEADER_INCOMING_EVENT, value=event),
            Param(name=HEADER_SECRET_NAME, value=secret_name),
        ]
        if event == PULL_REQUEST_EVENT:
            headers.append(Param(name=HEADER_INCOMING_ACTIONS, value=PULL_REQUEST_ACTIONS))

        return EventListenerTrigger(
            name=name,
            binding=ResourceRef(name=binding),
            template=ResourceRef(name=template),
            params=params,
            interceptor=Interceptor(
                header=headers,
                object_ref=ObjectReference(name=VALIDATOR_SERVICE_NAME, namespace=self.namespace),
            ),
        )

    def build_triggers(self, webhook: Webhook, dashboard_url: Optional[str] = None) -> list[EventListenerTrigger]:
        """Build the triggers for a webhook, including the monitor when a dashboard URL is given"""
        server, org, repo = get_git_values(webhook.gitrepositoryurl)
        server = server.removeprefix("https://").removeprefix("http://")

        pipeline_params = [
            Param(name=PARAM_TARGET_NAMESPACE, value=webhook.namespace),
            Param(name=PARAM_SERVICE_ACCOUNT, value=webhook.serviceaccount),
            Param(name=PARAM_DOCKER_REGISTRY, value=webhook.dockerregistry),
            Param(name=PARAM_GIT_SERVER, value=server),
            Param(name=PARAM_GIT_ORG, value=org),
            Param(name=PARAM_GIT_REPO, value=repo),
        ]
        template = f"{webhook.pipeline}-{TEMPLATE_POSTFIX}"

        triggers = [
            self.new_trigger(
                f"{webhook.name}-{PUSH_TRIGGER_POSTFIX}",
                f"{webhook.pipeline}-{PUSH_BINDING_POSTFIX}",
                template,
                webhook.gitrepositoryurl,
                PUSH_EVENT,
                webhook.accesstoken,
                pipeline_params,
            ),
            self.new_trigger(
                f"{webhook.name}-{PULL_REQUEST_TRIGGER_POSTFIX}",
                f"{webhook.pipeline}-{PULL_REQUEST_BINDING_POSTFIX}",
                template,
                webhook.gitrepositoryurl,
                PULL_REQUEST_EVENT,
                webhook.accesstoken,
                pipeline_params,
            ),
        ]

        if dashboard_url is not None:
            monitor_params = [
                Param(name=PARAM_GIT_SECRET_NAME, value=webhook.accesstoken),
                Param(name=PARAM_GIT_SECRET_KEY_NAME, value=ACCESS_TOKEN_KEY),
                Param(name=PARAM_DASHBOARD_URL, value=dashboard_url),
            ]
            triggers.append(self.new_trigger(
                f"{webhook.name}-{MONITOR_TRIGGER_POSTFIX}",
                f"{webhook.pipeline}-{MONITOR_BINDING_POSTFIX}",
                template,
                webhook.gitrepositoryurl,
                PULL_REQUEST_EVENT,
                webhook.accesstoken,
                monitor_params,
            ))
        return triggers

    async def _check_pipeline_resources(self, pipeline: str) -> bool:
        """Check the pipeline's template and bindings exist.

        Returns whether the optional monitor binding exists as well.

        Raises:
            WebhookError: 400 if the template or either required binding is missing
        """
        template = f"{pipeline}-{TEMPLATE_POSTFIX}"
        push_binding = f"{pipeline}-{PUSH_BINDING_POSTFIX}"
        pull_request_binding = f"{pipeline}-{PULL_REQUEST_BINDING_POSTFIX}"
        try:
            await self.cluster.get_trigger_template(self.namespace, template)
            await self.cluster.get_trigger_binding(self.namespace, push_binding)
            await self.cluster.get_trigger_binding(self.namespace, pull_request_binding)
        except ClusterError as e:
            raise WebhookError(
                f"Could not find the required trigger template or trigger bindings in namespace: "
                f"{self.namespace}. Expected to find: {template}, {push_binding}, "
                f"{pull_request_binding}", 400
            ) from e

        monitor_binding = f"{pipeline}-{MONITOR_BINDING_POSTFIX}"
        try:
            await self.cluster.get_trigger_binding(self.namespace, monitor_binding)
        except ClusterError as e:
            logger.info(f"No monitor binding {monitor_binding} found, skipping monitor trigger: {e.message}")
            return False
        return True

    async def _get_credential_tokens(self, secret_name: str) -> tuple[str, str]:
        try:
            return await self.credentials.get_secret_tokens(secret_name)
        except CredentialError as e:
            raise WebhookError(e.message, 500) from e

    # =========================================================================
    # Operations
    # =========================================================================

    async def get_all_webhooks(self) -> list[Webhook]:
        event_listener = await self.get_event_listener()
        if event_listener is None:
            return []
        return self.get_webhooks(self.get_triggers(event_listener))

    async def create_webhook(self, webhook: Webhook) -> Webhook:
        """Register a webhook.

        Raises:
            WebhookError: 400 for invalid input or duplicates, 500 for
                cluster or Git provider failures
        """
        async with self._lock:
            return await self._create_webhook(webhook)

    async def _create_webhook(self, webhook: Webhook) -> Webhook:
        error = webhook.validation_error()
        if error:
            raise WebhookError(error, 400)
        try:
            repo_url = sanitize_git_url(webhook.gitrepositoryurl).geturl()
        except InvalidGitURLError as e:
            raise WebhookError(f"Invalid value webhook URL: {e}", 400) from e
        webhook = webhook.model_copy(update={"gitrepositoryurl": repo_url})

        has_monitor = await self._check_pipeline_resources(webhook.pipeline)

        event_listener = await self.get_event_listener()
        is_new = event_listener is None
        if is_new:
            event_listener = self.base_event_listener()

        existing = self.get_webhooks(self.get_triggers(event_listener))
        for other in existing:
            if other.name == webhook.name:
                raise WebhookError(f"webhook with name {webhook.name} already exists", 400)
            if (normalize_repo_url(other.gitrepositoryurl) == normalize_repo_url(repo_url)
                    and other.pipeline == webhook.pipeline):
                raise WebhookError(
                    f"webhook already exists for repository {repo_url} and pipeline {webhook.pipeline}", 400
                )

        if not filter_webhooks_by_repo(existing, repo_url):
            access_token, secret_token = await self._get_credential_tokens(webhook.accesstoken)
            try:
                await self.github.subscribe(
                    repo_url, settings.webhook_callback_url, access_token, secret_token
                )
            except GitHubHubError as e:
                raise WebhookError(str(e), 500) from e

        dashboard_url = await self.network.get_dashboard_url() if has_monitor else None
        new_triggers = self.build_triggers(webhook, dashboard_url)
        spec = event_listener.setdefault("spec", {})
        spec["triggers"] = (spec.get("triggers") or []) + [t.to_dict() for t in new_triggers]

        try:
            if is_new:
                await self.cluster.create_event_listener(self.namespace, event_listener)
            else:
                await self.cluster.update_event_listener(self.namespace, EVENT_LISTENER_NAME, event_listener)
        except ClusterError as e:
            raise WebhookError(f"error writing the event listener: {e.message}", 500) from e
        logger.info(f"Added {len(new_triggers)} triggers for webhook {webhook.name} on {repo_url}")

        if is_new:
            await self._expose_event_listener()
        return webhook

    async def _expose_event_listener(self) -> None:
        """Create the ingress or route for a new event listener, deleting the listener on failure"""
        try:
            service_name = await self.wait_for_generated_name()
            await self.network.create(service_name)
        except ClusterError as e:
            message = f"error creating the network resource for the event listener: {e.message}"
            logger.error(message)
            try:
                await self.cluster.delete_event_listener(self.namespace, EVENT_LISTENER_NAME)
            except ClusterError as cleanup:
                logger.error(f"error deleting the event listener during cleanup: {cleanup.message}")
                message = f"{message}; error deleting the event listener: {cleanup.message}"
            raise WebhookError(message, 500) from e

    async def delete_webhook(self, name: str, repository: str, delete_pipeline_runs: bool = False) -> None:
        """Remove a webhook's triggers from the shared event listener.

        Raises:
            WebhookError: 404 if no such webhook exists on the repository,
                500 for cluster or Git provider failures
        """
        async with self._lock:
            await self._delete_webhook(name, repository, delete_pipeline_runs)

    async def _delete_webhook(self, name: str, repository: str, delete_pipeline_runs: bool) -> None:
        not_found = WebhookError(
            f"Webhook with name {name} and repository {repository} was not found", 404
        )
        event_listener = await self.get_event_listener()
        if event_listener is None:
            raise not_found

        on_repo = filter_webhooks_by_repo(self.get_webhooks(self.get_triggers(event_listener)), repository)
        webhook = find_webhook_by_name(on_repo, name)
        if webhook is None:
            raise not_found

        if len(on_repo) == 1:
            try:
                access_token, secret_token = await self.credentials.get_secret_tokens(webhook.accesstoken)
            except CredentialError as e:
                if e.status_code == 404:
                    raise WebhookError(
                        f"Credential {webhook.accesstoken} for webhook {name} was not found, "
                        f"recreate it to unsubscribe {webhook.gitrepositoryurl}", 400
                    ) from e
                raise WebhookError(e.message, 500) from e
            try:
                await self.github.unsubscribe(
                    webhook.gitrepositoryurl, settings.webhook_callback_url, access_token, secret_token
                )
            except GitHubHubError as e:
                raise WebhookError(str(e), 500) from e

        prefix = f"{name}-"
        spec = event_listener.setdefault("spec", {})
        remaining = [t for t in spec.get("triggers") or [] if not t.get("name", "").startswith(prefix)]

        try:
            if remaining:
                spec["triggers"] = remaining
                await self.cluster.update_event_listener(self.namespace, EVENT_LISTENER_NAME, event_listener)
            else:
                await self.cluster.delete_event_listener(self.namespace, EVENT_LISTENER_NAME)
                service_name = ((event_listener.get("status") or {}).get("configuration") or {}).get("generatedName")
                if service_name:
                    await self.network.delete(service_name)
        except ClusterError as e:
            raise WebhookError(f"error removing webhook {name} from the event listener: {e.message}", 500) from e
        logger.info(f"Removed webhook {name} for {repository}")

        if delete_pipeline_runs:
            await self._delete_pipeline_runs(webhook)

    async def _delete_pipeline_runs(self, webhook: Webhook) -> None:
        """Delete runs of the webhook's pipeline on its repository.

        Failures are logged only, the webhook itself is already gone.
        """
        server, org, repo = get_git_values(webhook.gitrepositoryurl)
        server = server.removeprefix("https://").removeprefix("http://")

        try:
            pipeline_runs = await self.cluster.list_pipeline_runs(webhook.namespace)
            deleted = 0
            for run in pipeline_runs:
                pipeline_ref = ((run.get("spec") or {}).get("pipelineRef") or {}).get("name")
                labels = (run.get("metadata") or {}).get("labels") or {}
                if pipeline_ref != webhook.pipeline:
                    continue
                if (labels.get("gitServer", "").lower(), labels.get("gitOrg", "").lower(),
                        labels.get("gitRepo", "").lower()) != (server, org, repo):
                    continue
                await self.cluster.delete_pipeline_run(webhook.namespace, run["metadata"]["name"])
                logger.info(f"Deleted PipelineRun {run['metadata']['name']}")
                deleted += 1
        except ClusterError as e:
            logger.error(f"Error deleting PipelineRuns for webhook {webhook.name}: {e.message}")
            return

        if not deleted:
            logger.info(f"No matching PipelineRuns found for webhook {webhook.name}")


# Singleton instance
webhook_service = WebhookService()
