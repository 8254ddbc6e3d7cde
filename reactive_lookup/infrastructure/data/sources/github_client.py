"""
GitHub REST client for user lookups and avatar downloads.

User lookups go through retry_with_delay for transport errors and 5xx answers,
then validate the status and decode once. Avatar downloads are single attempts
because the cascade already falls back to a placeholder image on failure.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable
from urllib.parse import quote

import requests

from reactive_lookup.domains.github.models import (
    GithubUser,
    UserDecodeError,
    is_lookup_candidate,
    normalize_username,
)
from reactive_lookup.domains.retry.retry_policy import (
    RetryCancelledError,
    RetryExhaustedError,
    RetryPolicy,
    retry_with_delay,
)
from reactive_lookup.services.pipeline.signal import ActivityIndicator
from reactive_lookup.utils.config import (
    github_api_url,
    github_timeout,
    github_token,
    retry_jitter,
    retry_max,
)
from reactive_lookup.utils.logger import get_logger

logger = get_logger()

GITHUB_ACCEPT = "application/vnd.github+json"
USER_AGENT = "reactive-lookup"


class InvalidServerResponse(RuntimeError):
    """Raised when GitHub answers with anything other than 200 OK."""

    def __init__(self, status_code: int | None, url: str, body: str | None = None) -> None:
        super().__init__(f"Unexpected HTTP status {status_code} from {url}")
        self.status_code = status_code
        self.url = url
        self.body = body


class ServerUnavailable(InvalidServerResponse):
    """A 5xx answer. Transient, so it consumes a retry."""


# Failures worth another attempt. A 4xx answer or an undecodable body would
# come back the same, so those are checked once after the retry loop.
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (requests.RequestException, ServerUnavailable)


def _response_body(r: Any) -> str | None:
    try:
        return r.text
    except Exception:
        return None


def default_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=retry_max(), jitter=retry_jitter())


class GitHubClient:
    """
    Thin wrapper over the GitHub users endpoint.

    Every request is tracked on `activity` so a UI can show a busy indicator.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        policy: RetryPolicy | None = None,
        timeout: float | None = None,
        activity: ActivityIndicator | None = None,
        session: Any = None,
    ) -> None:
        self._base_url = (base_url or github_api_url()).rstrip("/")
        self._token = token if token is not None else github_token()
        self.policy = policy or default_policy()
        self._timeout = timeout if timeout is not None else github_timeout()
        self.activity = activity or ActivityIndicator()
        self._http = session or requests

    def _headers(self) -> dict[str, str]:
        h = {"Accept": GITHUB_ACCEPT, "User-Agent": USER_AGENT}
        if self._token:
            h["Authorization"] = f"Bearer {self._token}"
        return h

    def user_url(self, username: str) -> str:
        return f"{self._base_url}/users/{quote(normalize_username(username), safe='')}"

    def _get(self, url: str, headers: dict[str, str] | None = None) -> Any:
        """One GET. Raises ServerUnavailable on 5xx; other statuses are left to _validate."""
        with self.activity.track():
            r = self._http.get(url, headers=headers, timeout=self._timeout)
        status = getattr(r, "status_code", None)
        if isinstance(status, int) and status >= 500:
            raise ServerUnavailable(status, url, _response_body(r))
        return r

    def _validate(self, r: Any, url: str) -> Any:
        status = getattr(r, "status_code", None)
        if status != 200:
            raise InvalidServerResponse(status, url, _response_body(r))
        return r

    def _decode_user(self, r: Any) -> GithubUser:
        try:
            data = r.json()
        except (json.JSONDecodeError, ValueError) as e:
            raise UserDecodeError(f"GitHub user payload is not JSON: {e}") from e
        return GithubUser.from_api(data)

    def fetch_user(
        self,
        username: str,
        *,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> GithubUser:
        """
        Fetch one user. Transport errors and 5xx answers are retried; the
        response is then validated and decoded once.

        Raises:
            RetryExhaustedError: All attempts failed.
            RetryCancelledError: `sleep` reported cancellation.
            InvalidServerResponse: GitHub answered with a non-200 status (404, 403, ...).
            UserDecodeError: The body did not decode into a user.
        """
        url = self.user_url(username)
        r = retry_with_delay(
            lambda: self._get(url, headers=self._headers()),
            self.policy,
            sleep=sleep,
            retry_on=RETRYABLE_ERRORS,
        )
        return self._decode_user(self._validate(r, url))

    def retrieve_users(
        self,
        username: str | None,
        *,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> list[GithubUser]:
        """
        Look up username, returning [user] or [] on any failure.

        Input too short to be a GitHub login returns [] without a request.
        Cancellation is not a failure and propagates as RetryCancelledError.
        """
        name = normalize_username(username)
        if not is_lookup_candidate(name):
            return []
        try:
            user = self.fetch_user(name, sleep=sleep)
        except RetryCancelledError:
            raise
        except RetryExhaustedError as e:
            logger.warning("GitHub lookup for %r gave up after %d attempts: %s", name, e.attempts, e.original)
            return []
        except (UserDecodeError, requests.RequestException, InvalidServerResponse) as e:
            logger.warning("GitHub lookup for %r failed: %s", name, e)
            return []
        logger.info("GitHub user %s: %d public repos", user.login, user.public_repos)
        return [user]

    def fetch_avatar(self, url: str) -> bytes:
        """Download avatar image bytes. Raises on transport errors and non-200 answers."""
        if not url:
            raise ValueError("Avatar URL is empty")
        r = self._validate(self._get(url, headers={"User-Agent": USER_AGENT}), url)
        content = r.content or b""
        if not content:
            raise InvalidServerResponse(200, url, "empty avatar body")
        return content
