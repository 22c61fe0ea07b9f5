"""Celery tasks for referee chat notifications.

Used when ``NOTIFICATION_BACKEND=celery``. Each task runs the inline
dispatcher inside the worker. Delivery failures are logged and reported in
the task result; tasks are not retried.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Any

from app.celery_app import celery_app
from app.core.config import NotificationBackendEnum
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)


def _inline_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(backend=NotificationBackendEnum.inline)


@celery_app.task(name="app.tasks.notification_tasks.send_referee_invitation_task", bind=True)
def send_referee_invitation_task(
    self,
    email: str,
    phone: str | None,
    name: str,
    url: str,
    job_title: str,
    company: str,
) -> dict[str, Any]:
    """Deliver a referee invitation from a worker."""
    logger.info("Sending referee invitation to %s (Task ID: %s)", email, self.request.id)
    result = asyncio.run(
        _inline_dispatcher().send_invitation(email, phone, name, url, job_title, company)
    )
    return asdict(result)


@celery_app.task(name="app.tasks.notification_tasks.send_new_message_alert_task", bind=True)
def send_new_message_alert_task(
    self,
    email: str,
    phone: str | None,
    name: str,
    url: str,
) -> dict[str, Any]:
    """Deliver a new-message alert from a worker."""
    logger.info("Sending new message alert to %s (Task ID: %s)", email, self.request.id)
    result = asyncio.run(_inline_dispatcher().send_new_message_alert(email, phone, name, url))
    return asdict(result)
