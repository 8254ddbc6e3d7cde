"""
GitHub user record and the values derived from it for display.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

UNKNOWN_COUNT = "unknown"
MIN_USERNAME_LENGTH = 3


class UserDecodeError(ValueError):
    """Raised when a /users/{login} payload lacks a required field."""


def _require(data: dict[str, Any], key: str, typ: type) -> Any:
    val = data.get(key)
    # bool is an int subclass; a boolean repo count is a malformed payload
    if val is None or not isinstance(val, typ) or isinstance(val, bool):
        raise UserDecodeError(f"GitHub user payload: '{key}' missing or not {typ.__name__}")
    return val


@dataclass(frozen=True)
class GithubUser:
    login: str
    name: str | None
    public_repos: int
    avatar_url: str

    @classmethod
    def from_api(cls, data: Any) -> "GithubUser":
        """Decode the JSON body of GET /users/{login}. Unknown keys are ignored."""
        if not isinstance(data, dict):
            raise UserDecodeError(f"GitHub user payload must be an object, got {type(data).__name__}")
        name = data.get("name")
        return cls(
            login=_require(data, "login", str),
            name=name if isinstance(name, str) and name.strip() else None,
            public_repos=_require(data, "public_repos", int),
            avatar_url=_require(data, "avatar_url", str),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.login


def normalize_username(text: str | None) -> str:
    return (text or "").strip()


def is_lookup_candidate(text: str | None) -> bool:
    """GitHub logins are never shorter than this; shorter input is not worth a request."""
    return len(normalize_username(text)) >= MIN_USERNAME_LENGTH


def repository_count_label(users: list[GithubUser]) -> str:
    """Repository count of the first user as text, or UNKNOWN_COUNT for an empty result."""
    if not users:
        return UNKNOWN_COUNT
    return str(users[0].public_repos)


def display_name(users: list[GithubUser]) -> str:
    return users[0].display_name if users else ""
