"""HTTP client for the QRIS disbursement gateway."""

from __future__ import annotations

from types import TracebackType
from typing import Optional, Type

import httpx

from ...domain.shared.qris_gateway_protocol import (
    QrisDisbursementRequest,
    QrisDisbursementResult,
)
from ..http.http_client import ServiceHttpClient


class HttpQrisGatewayClient:
    """Implements QrisGatewayProtocol against `POST {base_url}/process-qris`.

    The gateway speaks camelCase; responses are `{success, message?}`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = ServiceHttpClient(
            "qris-gateway", base_url, timeout=timeout, transport=transport
        )

    async def disburse(
        self, request: QrisDisbursementRequest
    ) -> QrisDisbursementResult:
        body = {
            "txHash": request.tx_hash,
            "amount": request.amount,
            "qrisPayload": request.qris_payload,
            "merchantName": request.merchant_name,
        }
        resp = await self._http.post("/process-qris", json=body)
        return QrisDisbursementResult.model_validate(resp.json())

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "HttpQrisGatewayClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
