"""HTTP client for the vault transfer service (gas-sponsored token transfers)."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Optional, Type

import httpx
from pydantic import ValidationError

from ...domain.errors import TransferOutcomeUnknownError, TransferRejectedError
from ...domain.shared.transfer_client_protocol import TransferReceipt, TransferRequest
from ..http.http_client import ServiceHttpClient

logger = logging.getLogger(__name__)


class HttpFundsTransferClient:
    """Implements FundsTransferProtocol against `POST {base_url}/transfers`.

    Failure mapping:
      - connection refused / DNS failure: the request never left, rejected
      - 4xx: the service refused the transfer, rejected
      - timeout, 5xx, unreadable body: may have been submitted, outcome unknown
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._http = ServiceHttpClient(
            "transfer", base_url, timeout=timeout, transport=transport
        )

    async def transfer(
        self, request: TransferRequest, idempotency_key: str
    ) -> TransferReceipt:
        try:
            resp = await self._http.post(
                "/transfers",
                json=request.model_dump(),
                headers={"Idempotency-Key": idempotency_key},
            )
        except httpx.ConnectError as e:
            raise TransferRejectedError(f"Transfer service unreachable: {e}") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code < 500:
                raise TransferRejectedError(
                    f"Transfer refused ({e.response.status_code}): {e.response.text}"
                ) from e
            raise TransferOutcomeUnknownError(
                f"Transfer service error ({e.response.status_code})"
            ) from e
        except httpx.RequestError as e:
            raise TransferOutcomeUnknownError(f"Transfer outcome unknown: {e}") from e

        try:
            receipt = TransferReceipt.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "Unreadable transfer receipt for key %s: %s", idempotency_key, e
            )
            raise TransferOutcomeUnknownError("Unreadable transfer receipt") from e
        return receipt

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "HttpFundsTransferClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()
