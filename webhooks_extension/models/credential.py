"""Credential models - Git access tokens stored as opaque secrets"""

import base64
from typing import Optional
from pydantic import BaseModel

ACCESS_TOKEN_KEY = "accessToken"
SECRET_TOKEN_KEY = "secretToken"


class CredentialRequest(BaseModel):
    """Request model for creating a credential"""
    name: str = ""
    accesstoken: str = ""

    def validation_error(self) -> Optional[str]:
        if not self.name:
            return "Name cannot be empty"
        if not self.accesstoken:
            return "AccessToken cannot be empty"
        return None


class Credential(BaseModel):
    """Response model for a credential"""
    name: str
    accesstoken: str
    secrettoken: str

    def to_secret(self, namespace: str) -> dict:
        """Build the opaque secret manifest holding this credential"""
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "type": "Opaque",
            "metadata": {"name": self.name, "namespace": namespace},
            "data": {
                ACCESS_TOKEN_KEY: _encode(self.accesstoken),
                SECRET_TOKEN_KEY: _encode(self.secrettoken),
            },
        }

    @classmethod
    def from_secret(cls, secret: dict) -> "Credential":
        data = secret.get("data") or {}
        return cls(
            name=secret["metadata"]["name"],
            accesstoken=_decode(data[ACCESS_TOKEN_KEY]),
            secrettoken=_decode(data[SECRET_TOKEN_KEY]),
        )


def is_credential(secret: dict) -> bool:
    """A secret is a credential when it holds both token keys"""
    data = secret.get("data") or {}
    return ACCESS_TOKEN_KEY in data and SECRET_TOKEN_KEY in data


def _encode(value: str) -> str:
    return base64.b64encode(value.encode()).decode()


def _decode(value: str) -> str:
    return base64.b64decode(value).decode()
