"""
Notification boundary.

Reminders are fire-and-forget side effects scheduled with
`UnitOfWork.after_commit`; a failing notifier never rolls back the record that
triggered it, and delivery is not retried. Actual e-mail delivery is left to
whatever `Notifier` the application wires in; the default one logs.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from record_store.domain.models import Task
from record_store.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class Notifier(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the log instead of delivering them."""

    def __init__(self, sender: str = "reminders@localhost") -> None:
        self.sender = sender

    def send(self, recipient: str, subject: str, body: str) -> None:
        log.info(
            f"[NOTIFY] {subject}",
            extra={"sender": self.sender, "recipient": recipient, "body": body},
        )


def task_reminder(notifier: Notifier, task: Task) -> None:
    """Tell the assignee about a newly created task."""
    body = f"Task #{task.id} '{task.title}' has been assigned to you."
    if task.description:
        body += f"\n\n{task.description}"
    notifier.send(task.assignee_email, f"Reminder: {task.title}", body)


__all__ = ["Notifier", "LoggingNotifier", "task_reminder"]
