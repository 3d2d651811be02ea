"""
Outbound lender notification webhook. Fire-and-forget: the response only gets logged,
and a failed POST never fails the action that triggered it.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from config import settings

logger = logging.getLogger(__name__)


class LenderNotifier(Protocol):
    async def notify(self, application_id: str, lender_ids: list[str]) -> None: ...


class WebhookNotifier:
    def __init__(self, url: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url if url is not None else settings.lender_webhook_url
        self._transport = transport

    async def notify(self, application_id: str, lender_ids: list[str]) -> None:
        if not self.url:
            logger.info("No lender webhook configured; skipping notification for %s", application_id)
            return
        payload = {"application_id": application_id, "lender_ids": lender_ids}
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, transport=self._transport) as client:
                response = await client.post(self.url, json=payload)
            logger.info(
                "Lender webhook for %s (%d lenders) returned %s",
                application_id,
                len(lender_ids),
                response.status_code,
            )
        except httpx.HTTPError as e:
            logger.error("Lender webhook for %s failed: %s", application_id, e)
