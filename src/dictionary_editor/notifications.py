"""Best-effort merge-confirmation notifications for suggestion authors.

Delivery happens off the merge path: the user lookup and the send run in a
worker thread, retried with exponential backoff, and any failure is logged
and dropped. A merge never fails because a notification did.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol

from tenacity import Retrying, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeNotification:
    """What the email collaborator needs to tell an author their suggestion was merged."""

    destination: str
    suggestion_type: str
    deep_link: str
    payload: dict[str, Any]


class UserDirectory(Protocol):
    def find_user(self, uid: str) -> Mapping[str, Any] | None: ...


NotificationSender = Callable[[MergeNotification], None]


class StaticUserDirectory:
    """In-memory ``uid -> {"email": ...}`` lookup."""

    def __init__(self, users: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._users = {uid: dict(data) for uid, data in (users or {}).items()}

    def add_user(self, uid: str, email: str | None) -> None:
        self._users[uid] = {"email": email}

    def find_user(self, uid: str) -> Mapping[str, Any] | None:
        return self._users.get(uid)


def log_notification(notification: MergeNotification) -> None:
    """Default sender: only logs what would have been sent."""
    logger.info(
        "Merged %s suggestion notification for %s: %s",
        notification.suggestion_type,
        notification.destination,
        notification.deep_link,
    )


class NotificationDispatcher:
    """Fire-and-forget delivery of :class:`MergeNotification` objects."""

    def __init__(
        self,
        sender: NotificationSender | None = None,
        users: UserDirectory | None = None,
        *,
        attempts: int = 3,
        wait_multiplier: float = 0.5,
        max_wait: float = 10.0,
        background: bool = True,
    ) -> None:
        self._sender = sender or log_notification
        self._users = users if users is not None else StaticUserDirectory()
        self._attempts = max(1, attempts)
        self._wait = wait_exponential(multiplier=wait_multiplier, max=max_wait)
        self._executor = (
            ThreadPoolExecutor(max_workers=1, thread_name_prefix="merge-notify")
            if background else None
        )
        self._pending: list[Future] = []

    def dispatch(
        self,
        author_id: str | None,
        suggestion_type: str,
        deep_link: str,
        payload: dict[str, Any],
    ) -> None:
        """Queue a notification for *author_id*; no-op without an author."""
        if not author_id:
            return
        if self._executor is None:
            self._deliver(author_id, suggestion_type, deep_link, payload)
            return
        self._pending = [f for f in self._pending if not f.done()]
        self._pending.append(self._executor.submit(
            self._deliver, author_id, suggestion_type, deep_link, payload,
        ))

    def _deliver(
        self,
        author_id: str,
        suggestion_type: str,
        deep_link: str,
        payload: dict[str, Any],
    ) -> None:
        try:
            user = self._users.find_user(author_id) or {}
            email = user.get("email")
            if not email:
                logger.debug(
                    "No email address for user %s, skipping merge notification",
                    author_id,
                )
                return
            notification = MergeNotification(
                destination=email,
                suggestion_type=suggestion_type,
                deep_link=deep_link,
                payload=payload,
            )
            for attempt in Retrying(
                stop=stop_after_attempt(self._attempts),
                wait=self._wait,
                reraise=True,
            ):
                with attempt:
                    self._sender(notification)
        except Exception:
            logger.exception("Failed to send merge notification to user %s", author_id)

    def flush(self) -> None:
        """Block until every queued notification has been handled."""
        pending, self._pending = self._pending, []
        for future in pending:
            future.result()

    def close(self) -> None:
        self.flush()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
