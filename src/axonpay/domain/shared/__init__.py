"""Shared domain interfaces."""

from .qris_gateway_protocol import (
    QrisDisbursementRequest,
    QrisDisbursementResult,
    QrisGatewayProtocol,
)
from .transfer_client_protocol import (
    FundsTransferProtocol,
    TransferReceipt,
    TransferRequest,
)

__all__ = [
    "FundsTransferProtocol",
    "QrisDisbursementRequest",
    "QrisDisbursementResult",
    "QrisGatewayProtocol",
    "TransferReceipt",
    "TransferRequest",
]
