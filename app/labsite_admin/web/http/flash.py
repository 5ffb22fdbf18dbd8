from __future__ import annotations

from typing import Any

from fastapi import Request

from labsite_admin.notifications import NotificationQueue


def notification_queue(request: Request) -> NotificationQueue:
    return NotificationQueue(request.session)


def pop_flashes(request: Request) -> list[dict[str, Any]]:
    return notification_queue(request).drain()
