"""Helpers for Git repository URLs and generated tokens"""

import secrets
from random import Random
from typing import Optional, Tuple
from urllib.parse import urlsplit, SplitResult

TOKEN_CHARACTERS = "123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
TOKEN_LENGTH = 20


class InvalidGitURLError(ValueError):
    """Raised when a repository URL is not of the form scheme://host.com/org/repo"""


def sanitize_git_url(raw_url: str) -> SplitResult:
    """Parse and validate a repository URL.

    A trailing ".git" is dropped. The URL must be http(s), the host must end
    in ".com", and the path must be exactly /<org>/<repo> with no trailing
    slash.
    """
    if raw_url.endswith(".git"):
        raw_url = raw_url[:-len(".git")]

    try:
        url = urlsplit(raw_url)
        hostname = url.hostname or ""
    except ValueError as e:
        raise InvalidGitURLError(f"URL '{raw_url}' is invalid: {e}")

    if url.scheme not in ("http", "https"):
        raise InvalidGitURLError(f"URL scheme '{url.scheme}' is invalid")
    if not hostname.endswith(".com") or hostname == ".com":
        raise InvalidGitURLError(f"URL hostname '{hostname}' is invalid")

    parts = url.path.split("/")
    if len(parts) != 3 or not parts[1] or not parts[2]:
        raise InvalidGitURLError(f"URL path '{url.path}' is invalid")
    return url


def get_git_values(url: str) -> Tuple[str, str, str]:
    """Split a repository URL into (server, org, repo), all lower case.

    The server keeps its scheme, e.g. "https://github.com".
    """
    url = url.lower()
    if url.startswith("https://"):
        prefix = "https://"
    elif url.startswith("http://"):
        prefix = "http://"
    else:
        prefix = ""
    repo_url = url[len(prefix):]

    if repo_url.count("/") < 2:
        raise InvalidGitURLError("URL didn't contain an owner and repository")

    repo_url = repo_url.rstrip("/")
    if repo_url.endswith(".git"):
        repo_url = repo_url[:-len(".git")]

    server, _, path = repo_url.partition("/")
    org, _, repo = path.rpartition("/")
    return prefix + server, org, repo


def normalize_repo_url(url: str) -> str:
    """Comparison key for repository URLs: lower case without a .git suffix"""
    url = url.lower().rstrip("/")
    if url.endswith(".git"):
        url = url[:-len(".git")]
    return url


def get_random_token(rng: Optional[Random] = None) -> str:
    """Generate a secret token for webhook payload signing.

    Pass a seeded ``random.Random`` to get reproducible tokens in tests.
    """
    rng = rng or secrets.SystemRandom()
    return "".join(rng.choice(TOKEN_CHARACTERS) for _ in range(TOKEN_LENGTH))


_TRUE_VALUES = {"1", "t", "T", "true", "TRUE", "True"}
_FALSE_VALUES = {"0", "f", "F", "false", "FALSE", "False"}


def parse_bool(value: str) -> bool:
    """Parse a boolean query parameter.

    Raises:
        ValueError: If the value is not a recognised boolean
    """
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value '{value}'")
