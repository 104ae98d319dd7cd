"""
Cloud Sync Client

Thin async HTTP client for backing up local learner state to the hosted
service and restoring it on another machine.

    POST /api/sync/push   {"data": <export>}   -> {"success": true}
    POST /api/sync/pull                        -> {"success": true, "data": <export>}

Identity is a bearer token passed in by the caller. Failures never raise:
they come back as an unsuccessful SyncResult and are logged.

Usage:
    async with SyncClient(base_url, token) as client:
        result = await client.push(store.export_all())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx
from loguru import logger

PUSH_ENDPOINT = "/api/sync/push"
PULL_ENDPOINT = "/api/sync/pull"


@dataclass
class SyncResult:
    """Result of a sync operation."""

    success: bool
    data: dict[str, Any] | None = None
    status_code: int | None = None
    error: str | None = None
    sync_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SyncClient:
    """HTTP client for the push/pull sync endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str | None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Service root, e.g. https://example.com
            token: Bearer token for the signed-in learner
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> SyncClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"

            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Sync
    # =========================================================================

    async def push(self, data: dict[str, Any]) -> SyncResult:
        """
        Upload a full state export.

        Args:
            data: Output of StateStore.export_all()
        """
        if not self.token:
            return SyncResult(success=False, error="Not signed in: no sync token provided")

        result = await self._post(PUSH_ENDPOINT, {"data": data})
        if result.success:
            logger.info(f"Pushed {len(data.get('sessions') or [])} sessions to {self.base_url}")
        return result

    async def pull(self) -> SyncResult:
        """Download the most recently pushed state export."""
        if not self.token:
            return SyncResult(success=False, error="Not signed in: no sync token provided")

        result = await self._post(PULL_ENDPOINT, None)
        if result.success and result.data is None:
            logger.info("No cloud data stored for this account")
        return result

    async def _post(self, endpoint: str, payload: dict[str, Any] | None) -> SyncResult:
        try:
            client = await self._ensure_client()
            response = await client.post(endpoint, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Connection error during sync ({endpoint}): {e}")
            return SyncResult(success=False, error=str(e))

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success", True):
            data = body.get("data")
            return SyncResult(
                success=True,
                data=data if isinstance(data, dict) else None,
                status_code=response.status_code,
            )

        error = body.get("error") or f"HTTP {response.status_code}"
        logger.error(f"Sync failed ({endpoint}): {error}")
        return SyncResult(success=False, status_code=response.status_code, error=error)
