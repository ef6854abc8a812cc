"""Webhook models - a repository hook mapped onto event listener triggers"""

from typing import Optional
from pydantic import BaseModel

MAX_NAME_LENGTH = 57


class Webhook(BaseModel):
    """Request/response model for a webhook.

    Field names match the JSON keys used by the dashboard extension UI.
    Missing fields default to empty strings so that ``validation_error``
    can report them in order.
    """
    name: str = ""
    namespace: str = ""
    serviceaccount: str = ""
    accesstoken: str = ""
    pipeline: str = ""
    dockerregistry: str = ""
    gitrepositoryurl: str = ""

    def validation_error(self) -> Optional[str]:
        """Return the first validation failure, or None when the webhook is valid"""
        if not self.name:
            return "Name must cannot be empty"
        if len(self.name) > MAX_NAME_LENGTH:
            return f"Name must be less than {MAX_NAME_LENGTH + 1} characters"
        # The name prefixes trigger names and is split on the first hyphen
        if "-" in self.name:
            return "Name may not contain hyphens"

        required = [
            ("Namespace", self.namespace),
            ("ServiceAccount", self.serviceaccount),
            ("AccessTokenRef", self.accesstoken),
            ("Pipeline", self.pipeline),
            ("Docker Registry", self.dockerregistry),
            ("GitRepositoryURL", self.gitrepositoryurl),
        ]
        for label, value in required:
            if not value:
                return f"{label} cannot be empty"
        return None
