"""Use cases for turning a scanned code into a payment."""

from __future__ import annotations

import logging
from typing import List

import httpx

from ....codec.classifier import classify
from ....domain.errors import InvalidPayloadError, MerchantNotFoundError
from ....domain.scan.entities import Merchant
from ....domain.scan.intents import (
    DirectTransfer,
    Invalid,
    PaymentIntent,
    QrisMerchant,
    RegisteredMerchant,
)
from ....domain.scan.repositories import MerchantDirectory
from ....domain.shared.qris_gateway_protocol import (
    QrisDisbursementRequest,
    QrisGatewayProtocol,
)
from ..dtos import (
    MerchantResponseDTO,
    PaymentTargetDTO,
    QrisDisbursementDTO,
    QrisDisbursementResponseDTO,
    RegisterMerchantDTO,
)

logger = logging.getLogger(__name__)

DIRECT_TRANSFER_NAME = "Direct Transfer"
DEFAULT_QRIS_NAME = "QRIS Merchant"


class PaymentDispatchService:
    """Service for routing scanned payloads to a payee."""

    def __init__(
        self,
        merchant_directory: MerchantDirectory,
        qris_gateway: QrisGatewayProtocol,
        vault_address: str,
    ):
        self.merchant_directory = merchant_directory
        self.qris_gateway = qris_gateway
        self.vault_address = vault_address

    def classify(self, payload: str) -> PaymentIntent:
        return classify(payload)

    async def resolve(self, payload: str) -> PaymentTargetDTO:
        intent = classify(payload)

        if isinstance(intent, DirectTransfer):
            return PaymentTargetDTO(
                kind=intent.kind,
                name=DIRECT_TRANSFER_NAME,
                wallet_address=intent.recipient_address,
            )

        if isinstance(intent, RegisteredMerchant):
            merchant = await self.merchant_directory.lookup(intent.merchant_prefix_key)
            if merchant is None:
                raise MerchantNotFoundError("Unrecognized AXON QR Code")
            return PaymentTargetDTO(
                kind=intent.kind,
                name=merchant.name,
                wallet_address=merchant.wallet_address,
            )

        if isinstance(intent, QrisMerchant):
            # QRIS merchants are paid in fiat by the gateway; crypto goes to the vault.
            return PaymentTargetDTO(
                kind=intent.kind,
                name=intent.merchant_name or DEFAULT_QRIS_NAME,
                wallet_address=self.vault_address,
                qris_payload=intent.raw_payload,
                suggested_amount=intent.suggested_amount,
            )

        raise InvalidPayloadError(intent.reason)

    async def disburse_qris(
        self, dto: QrisDisbursementDTO
    ) -> QrisDisbursementResponseDTO:
        intent = classify(dto.qris_payload)
        if not isinstance(intent, QrisMerchant):
            reason = intent.reason if isinstance(intent, Invalid) else "not a QRIS payload"
            raise InvalidPayloadError(reason)

        request = QrisDisbursementRequest(
            tx_hash=dto.tx_hash,
            amount=dto.amount,
            qris_payload=intent.raw_payload,
            merchant_name=dto.merchant_name or intent.merchant_name or DEFAULT_QRIS_NAME,
        )
        try:
            result = await self.qris_gateway.disburse(request)
        except httpx.HTTPError as e:
            logger.warning("QRIS gateway unavailable for tx %s: %s", dto.tx_hash, e)
            return QrisDisbursementResponseDTO(
                success=False,
                message="Payment sent to vault. Fiat disbursement queued.",
            )

        if result.success:
            logger.info("QRIS disbursement accepted for tx %s", dto.tx_hash)
        else:
            logger.warning(
                "QRIS disbursement refused for tx %s: %s", dto.tx_hash, result.message
            )
        return QrisDisbursementResponseDTO(
            success=result.success, message=result.message
        )

    async def register_merchant(self, dto: RegisterMerchantDTO) -> MerchantResponseDTO:
        if not isinstance(classify(dto.qr_prefix), RegisteredMerchant):
            raise ValueError("qr_prefix must be an AXON: merchant code")
        if not isinstance(classify(dto.wallet_address), DirectTransfer):
            raise ValueError("wallet_address must be 0x followed by 40 hex characters")

        merchant = Merchant(
            name=dto.name,
            wallet_address=dto.wallet_address,
            qr_prefix=dto.qr_prefix,
        )
        created = await self.merchant_directory.register(merchant)
        logger.info("Merchant %s registered under %s", created.name, created.qr_prefix)
        return MerchantResponseDTO.from_entity(created)

    async def list_merchants(
        self, skip: int = 0, limit: int = 100
    ) -> List[MerchantResponseDTO]:
        merchants = await self.merchant_directory.get_all(skip=skip, limit=limit)
        return [MerchantResponseDTO.from_entity(m) for m in merchants]
