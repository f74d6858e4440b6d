"""Push delivery.

The dispatcher only knows ``Notifier.send(endpoint, keys, payload)``; any
transport returning a ``NotifyResult`` can be plugged in.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, Dict, Protocol

from anyio import to_thread
import requests
from pydantic import BaseModel
from pywebpush import WebPushException, webpush

from config import Settings
from models.enums import PushMode
from services.errors import EndpointGone, TransportFailure
from services.records import SubscriptionKeys

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = (404, 410)


class NotifyStatus(str, Enum):
    ok = "ok"
    expired = "expired"
    error = "error"


class NotifyResult(BaseModel):
    status: NotifyStatus
    detail: str = ""

    @classmethod
    def ok(cls) -> "NotifyResult":
        return cls(status=NotifyStatus.ok)

    @classmethod
    def expired(cls, detail: str = "") -> "NotifyResult":
        return cls(status=NotifyStatus.expired, detail=detail)

    @classmethod
    def error(cls, detail: str) -> "NotifyResult":
        return cls(status=NotifyStatus.error, detail=detail[:2000])


class Notifier(Protocol):
    async def send(self, endpoint: str, keys: SubscriptionKeys, payload: Dict[str, Any]) -> NotifyResult:
        ...


class StubNotifier:
    """Accepts every message without sending anything."""

    async def send(self, endpoint: str, keys: SubscriptionKeys, payload: Dict[str, Any]) -> NotifyResult:
        logger.info("Push stub: %s -> %s", payload.get("title"), endpoint[:60])
        return NotifyResult.ok()


class WebPushNotifier:
    def __init__(self, private_key: str, subject: str, timeout: float = 10.0):
        if not private_key or not subject:
            raise ValueError("VAPID_PRIVATE_KEY and VAPID_SUBJECT are required for web push")
        self.private_key = private_key
        self.subject = subject
        self.timeout = timeout

    def _deliver(self, endpoint: str, keys: SubscriptionKeys, data: str) -> None:
        try:
            webpush(
                subscription_info={"endpoint": endpoint, "keys": keys.model_dump()},
                data=data,
                vapid_private_key=self.private_key,
                # pywebpush fills in aud/exp on the dict it is given
                vapid_claims={"sub": self.subject},
                timeout=self.timeout,
            )
        except WebPushException as exc:
            status = getattr(exc.response, "status_code", None)
            if status in GONE_STATUS_CODES:
                raise EndpointGone(f"push service answered {status}") from exc
            raise TransportFailure(str(exc)) from exc
        except requests.RequestException as exc:
            raise TransportFailure(str(exc)) from exc

    async def send(self, endpoint: str, keys: SubscriptionKeys, payload: Dict[str, Any]) -> NotifyResult:
        data = json.dumps(payload)
        try:
            await to_thread.run_sync(self._deliver, endpoint, keys, data, abandon_on_cancel=True)
        except EndpointGone as exc:
            return NotifyResult.expired(exc.detail)
        except TransportFailure as exc:
            return NotifyResult.error(exc.detail)
        return NotifyResult.ok()


def build_notifier(settings: Settings) -> Notifier:
    if settings.push_mode == PushMode.webpush.value:
        return WebPushNotifier(
            private_key=settings.vapid_private_key,
            subject=settings.vapid_subject,
            timeout=settings.push_timeout_seconds,
        )
    if settings.push_mode != PushMode.stub.value:
        logger.warning("Unknown PUSH_MODE %r, falling back to stub", settings.push_mode)
    return StubNotifier()
