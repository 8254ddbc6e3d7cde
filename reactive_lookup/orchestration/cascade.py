"""
Cascading user lookup: username -> users -> (repository count, avatar).

    username ──F──> users ──G──> repository_count   (sync, "unknown" when empty)
                          └─H──> avatar             (async, placeholder on failure)

F and H are latest-wins stages: a new upstream value supersedes the in-flight
job and the old job's result is never delivered. G runs inline wherever users
are delivered. A failure in G or H only replaces that output with its fallback.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from reactive_lookup.domains.github.models import (
    UNKNOWN_COUNT,
    GithubUser,
    display_name,
    normalize_username,
    repository_count_label,
)
from reactive_lookup.services.pipeline.dispatch import ImmediateDispatcher, QueueDispatcher
from reactive_lookup.services.pipeline.latest import CancelToken, LatestStage
from reactive_lookup.services.pipeline.signal import ActivityIndicator, Signal
from reactive_lookup.utils.config import username_settle_seconds
from reactive_lookup.utils.logger import get_logger

logger = get_logger()

AVATAR_PLACEHOLDER = b""
MAX_WORKERS = 4


@dataclass(frozen=True)
class LookupSnapshot:
    """Everything the UI shows, read at one point in time."""

    username: str = ""
    display_name: str = ""
    repository_count: str = UNKNOWN_COUNT
    avatar: bytes = AVATAR_PLACEHOLDER
    busy: bool = False

    @property
    def has_avatar(self) -> bool:
        return bool(self.avatar)


class UserLookupCascade:
    def __init__(
        self,
        client: Any | None = None,
        *,
        dispatcher: Any | None = None,
        executor: Any | None = None,
        settle_seconds: float | None = None,
    ) -> None:
        self._client = client
        self._dispatcher = dispatcher or ImmediateDispatcher()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="lookup")
        self._settle = settle_seconds if settle_seconds is not None else username_settle_seconds()
        self._restored = LookupSnapshot()
        self._build()

    def _build(self) -> None:
        client_activity = getattr(self._client, "activity", None)
        self.activity: ActivityIndicator = (
            client_activity if isinstance(client_activity, ActivityIndicator) else ActivityIndicator()
        )
        self.avatar_failures = 0

        self.username: Signal[str] = Signal(remove_duplicates=True, name="username")
        self.users: Signal[list[GithubUser]] = Signal(name="users")
        self.repository_count: Signal[str] = Signal(name="repository_count")
        self.display_name: Signal[str] = Signal(name="display_name")
        self.avatar: Signal[bytes] = Signal(name="avatar")

        self._users_stage: LatestStage[str, list[GithubUser]] = LatestStage(
            self._retrieve_users,
            executor=self._executor,
            dispatcher=self._dispatcher,
            on_result=self.users.send,
            on_error=self._on_users_error,
            settle_seconds=self._settle,
            name="users",
        )
        self._avatar_stage: LatestStage[list[GithubUser], bytes] = LatestStage(
            self._fetch_avatar,
            executor=self._executor,
            dispatcher=self._dispatcher,
            on_result=self.avatar.send,
            on_error=self._on_avatar_error,
            name="avatar",
        )
        self.username.subscribe(self._users_stage.submit)
        self.users.subscribe(self._on_users)

    def __getstate__(self) -> dict[str, Any]:
        """Keep only what the page displayed; threads and clients are rebuilt on restore."""
        return {
            "_restored": self.snapshot(),
            "_settle": self._settle,
            "_queued": isinstance(self._dispatcher, QueueDispatcher),
        }

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._client = None  # recreated on demand
        self._dispatcher = QueueDispatcher() if state.get("_queued") else ImmediateDispatcher()
        self._owns_executor = True
        self._executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="lookup")
        self._settle = state.get("_settle", 0.0)
        self._restored = state.get("_restored") or LookupSnapshot()
        self._build()

    @property
    def client(self) -> Any:
        if self._client is None:
            from reactive_lookup.infrastructure.data.sources.github_client import GitHubClient

            self._client = GitHubClient(activity=self.activity)
        return self._client

    @property
    def dispatcher(self) -> Any:
        return self._dispatcher

    # --- stage bodies and fallbacks ---

    def _retrieve_users(self, username: str, token: CancelToken) -> list[GithubUser]:
        return self.client.retrieve_users(username, sleep=token.wait)

    def _on_users_error(self, error: Exception) -> None:
        logger.warning("User lookup failed, showing no user: %s", error)
        self.users.send([])

    def _on_users(self, users: list[GithubUser]) -> None:
        try:
            label = repository_count_label(users)
        except Exception as e:
            logger.warning("Repository count unavailable: %s", e)
            label = UNKNOWN_COUNT
        self.repository_count.send(label)
        self.display_name.send(display_name(users))
        self._avatar_stage.submit(users)

    def _fetch_avatar(self, users: list[GithubUser], token: CancelToken) -> bytes:
        if not users:
            return AVATAR_PLACEHOLDER
        return self.client.fetch_avatar(users[0].avatar_url)

    def _on_avatar_error(self, error: Exception) -> None:
        self.avatar_failures += 1
        logger.warning("Avatar download failed, showing placeholder: %s", error)
        self.avatar.send(AVATAR_PLACEHOLDER)

    # --- public surface ---

    def set_username(self, text: str | None) -> bool:
        """Feed a new username. Returns False if it equals the current one."""
        return self.username.send(normalize_username(text))

    def snapshot(self) -> LookupSnapshot:
        r = self._restored

        def pick(sig: Signal, fallback: Any) -> Any:
            return sig.value if sig.has_value else fallback

        return LookupSnapshot(
            username=pick(self.username, r.username),
            display_name=pick(self.display_name, r.display_name),
            repository_count=pick(self.repository_count, r.repository_count),
            avatar=pick(self.avatar, r.avatar),
            busy=self.activity.busy or self._users_stage.pending > 0 or self._avatar_stage.pending > 0,
        )

    def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Wait until both stages are idle and every delivery has run.

        With a QueueDispatcher the deliveries are drained on the calling thread,
        so call this from the thread that owns the UI. Returns False on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            for stage in (self._users_stage, self._avatar_stage):
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0.0)
                if not stage.wait_idle(remaining):
                    return False
            drained = self._dispatcher.drain() if isinstance(self._dispatcher, QueueDispatcher) else 0
            if drained == 0 and self._users_stage.pending == 0 and self._avatar_stage.pending == 0:
                return True

    def cancel(self) -> None:
        self._users_stage.cancel()
        self._avatar_stage.cancel()

    def close(self) -> None:
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
