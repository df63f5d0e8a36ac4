"""Shared httpx plumbing for the outbound service clients."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Dict, Optional, Type

import httpx

logger = logging.getLogger(__name__)


class ServiceHttpClient:
    """httpx.AsyncClient bound to one collaborator service.

    Paths are joined onto `base_url`, non-2xx responses raise
    `httpx.HTTPStatusError`, and every failure is logged with the service name
    before it propagates.
    """

    def __init__(
        self,
        service_name: str,
        base_url: str,
        timeout: float = 10.0,
        *,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.service_name = service_name
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def post(
        self,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = await self._client.post("/" + path.lstrip("/"), json=json, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("%s POST %s failed: %r", self.service_name, path, e)
            raise
        return resp

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ServiceHttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        await self.aclose()
