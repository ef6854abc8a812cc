"""API Routes"""

from webhooks_extension.routes import credentials, health, webhooks

__all__ = ["credentials", "health", "webhooks"]
