"""Helpers for remote git urls that may embed an access token.

A gitops remote is usually of the form `https://<token>@github.com/org/repo`
so any error that echoes the remote, including the output of a failed git
command, must be sanitized before it leaves this library.
"""

import re
from urllib.parse import urlparse

from .exceptions import InvalidRemoteError

__all__ = [
    "validate_remote",
    "sanitize_error_message",
]


ALLOWED_HOSTS = frozenset({"github.com", "gitlab.com", "bitbucket.org"})
INVALID_REMOTE_MSG = "invalid remote git url, please check url format"
TOKEN_REDACTED = "<TOKEN>"

# Access tokens of the supported git hosts in the user-info part of a url
TOKEN_REGEX = re.compile(r"(?:ghp|gho|ghu|ghs|ghr|github_pat|glpat)_[A-Za-z0-9_-]+@")


def validate_remote(remote: str) -> None:
    """Raise InvalidRemoteError unless the remote is https on an allowed host."""
    try:
        url = urlparse(remote)
        host = url.hostname
    except ValueError as err:
        raise InvalidRemoteError(INVALID_REMOTE_MSG) from err
    if url.scheme != "https" or host not in ALLOWED_HOSTS:
        raise InvalidRemoteError(INVALID_REMOTE_MSG)


def sanitize_error_message(message: str) -> str:
    """Replace any access token in the user-info of a url with `<TOKEN>`.

    Messages without an embedded token are returned unchanged.
    """
    return TOKEN_REGEX.sub(f"{TOKEN_REDACTED}@", message)
