"""Tests for repository URL and token helpers"""

from random import Random

import pytest

from webhooks_extension.utils import (
    InvalidGitURLError,
    TOKEN_CHARACTERS,
    get_git_values,
    get_random_token,
    normalize_repo_url,
    parse_bool,
    sanitize_git_url,
)


class TestSanitizeGitURL:
    """Test repository URL validation"""

    @pytest.mark.parametrize("url", [
        "https://github.com/owner/repo",
        "http://github.com/owner/repo",
        "https://github.com/owner/repo.git",
        "https://github.ibm.com/owner/repo",
    ])
    def test_valid_urls(self, url):
        result = sanitize_git_url(url)

        assert result.geturl() == url.removesuffix(".git")

    @pytest.mark.parametrize("url", [
        "ftp://github.com/owner/repo",
        "github.com/owner/repo",
        "https://gitlab.org/owner/repo",
        "https://.com/owner/repo",
        "https://github.com/owner",
        "https://github.com/owner/repo/",
        "https://github.com//repo",
        "https://github.com/owner/repo/extra",
    ])
    def test_invalid_urls(self, url):
        with pytest.raises(InvalidGitURLError):
            sanitize_git_url(url)


class TestGetGitValues:
    """Test splitting repository URLs"""

    def test_https_url(self):
        assert get_git_values("https://github.com/Owner/Repo") == ("https://github.com", "owner", "repo")

    def test_git_suffix_dropped(self):
        assert get_git_values("http://github.com/owner/repo.git") == ("http://github.com", "owner", "repo")

    def test_missing_repo(self):
        with pytest.raises(InvalidGitURLError):
            get_git_values("https://github.com/owner")


class TestNormalizeRepoURL:
    def test_case_and_suffix_ignored(self):
        assert normalize_repo_url("https://GitHub.com/Owner/Repo.git") == "https://github.com/owner/repo"


class TestRandomToken:
    """Test secret token generation"""

    def test_length_and_alphabet(self):
        token = get_random_token()

        assert len(token) == 20
        assert all(c in TOKEN_CHARACTERS for c in token)

    def test_seeded_generator_is_reproducible(self):
        assert get_random_token(Random(7)) == get_random_token(Random(7))

    def test_no_zero_character(self):
        assert "0" not in TOKEN_CHARACTERS


class TestParseBool:
    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("1", True), ("T", True),
        ("false", False), ("0", False), ("F", False),
    ])
    def test_values(self, value, expected):
        assert parse_bool(value) is expected

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_bool("yes")
