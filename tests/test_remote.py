"""Tests for remote url validation and token sanitization."""

import pytest

from gitops_generator.exceptions import InputException, InvalidRemoteError
from gitops_generator.remote import (
    INVALID_REMOTE_MSG,
    sanitize_error_message,
    validate_remote,
)


@pytest.mark.parametrize(
    "remote",
    [
        "https://2340908kjfas@gitlab.com/org/repo",
        "https://github.com/org/repo123.git",
        "https://ghp_2340908kjfas@github.com/org/repo",
        "https://bitbucket.org/org/repo",
    ],
)
def test_valid_remote(remote: str) -> None:
    """Test https remotes on the supported git hosts."""
    validate_remote(remote)


@pytest.mark.parametrize(
    "remote",
    [
        "https://2340908kjfas@xyz.com/org/repo",
        "http://2340908kjfas@github.com/org/repo",
        "/ghp_2340908kjfas@github.com/org/repo123/",
        "git@github.com:org/repo.git",
        "ssh://git@github.com/org/repo",
        "https://github.com.evil.com/org/repo",
        "",
    ],
)
def test_invalid_remote(remote: str) -> None:
    """Test remotes with an unsupported scheme or host."""
    with pytest.raises(InvalidRemoteError) as exc_info:
        validate_remote(remote)
    assert str(exc_info.value) == INVALID_REMOTE_MSG
    assert isinstance(exc_info.value, InputException)


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        (
            "Unable to create component, some error occurred",
            "Unable to create component, some error occurred",
        ),
        (
            'failed clone repository "https://ghp_fj3492danj924@github.com/fake/repo"',
            'failed clone repository "https://<TOKEN>@github.com/fake/repo"',
        ),
        (
            'failed clone repository "https://ghp_fj3492danj924@github.com/fake/repo" '
            'and "https://ghu_fj3492danj924@github.com/fake/repo"',
            'failed clone repository "https://<TOKEN>@github.com/fake/repo" '
            'and "https://<TOKEN>@github.com/fake/repo"',
        ),
        (
            "push to https://glpat-abc_12@gitlab.com/org/repo failed",
            "push to https://glpat-abc_12@gitlab.com/org/repo failed",
        ),
        (
            "push to https://glpat_abc-12@gitlab.com/org/repo failed",
            "push to https://<TOKEN>@gitlab.com/org/repo failed",
        ),
        (
            "https://github_pat_11ABC_def@github.com/org/repo",
            "https://<TOKEN>@github.com/org/repo",
        ),
        (
            "random error message with ghp_faketokensdffjfjfn",
            "random error message with ghp_faketokensdffjfjfn",
        ),
        (
            'failed clone repository "https://@github.com/fake/repo"',
            'failed clone repository "https://@github.com/fake/repo"',
        ),
    ],
    ids=[
        "nothing-to-sanitize",
        "token",
        "multiple-tokens",
        "unknown-marker",
        "gitlab-token",
        "fine-grained-token",
        "token-outside-url",
        "empty-user-info",
    ],
)
def test_sanitize_error_message(message: str, expected: str) -> None:
    """Test that tokens in the user-info of a url are redacted."""
    assert sanitize_error_message(message) == expected


@pytest.mark.parametrize(
    "remote",
    [
        "https://ghp_fj3492danj924@github.com/fake/repo",
        "ghp_A8jk2jsofle@github.com",
        "ghu_islaj29falkjsdf@github.com",
    ],
)
def test_sanitize_never_leaks_token(remote: str) -> None:
    """Test that a known token never survives sanitization."""
    token = remote.split("@")[0].removeprefix("https://")
    sanitized = sanitize_error_message(f"failed to push {remote}")
    assert token not in sanitized
    assert "<TOKEN>" in sanitized
