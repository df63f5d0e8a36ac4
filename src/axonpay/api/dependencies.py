"""FastAPI dependencies for the AxonPay API."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from ..application.scan.use_cases.dispatch import PaymentDispatchService
from ..application.snap.use_cases.snap_ledger import SnapLedger
from ..domain.scan.repositories import MerchantDirectory
from ..domain.snap.repositories import SnapRepository
from ..env import Settings, get_settings
from ..infrastructure.database import DatabaseClient, get_database_client
from ..infrastructure.merchant.merchant_directory_impl import MerchantDirectoryImpl
from ..infrastructure.qris.qris_gateway_client import HttpQrisGatewayClient
from ..infrastructure.snap.snap_repository_impl import SnapRepositoryImpl
from ..infrastructure.storage import KeyValueStore, RedisKeyValueStore
from ..infrastructure.transfer.transfer_client import HttpFundsTransferClient


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_database_client_dependency() -> DatabaseClient:
    return get_database_client(get_settings_dependency())


@lru_cache()
def get_key_value_store() -> KeyValueStore:
    """Shared store; it holds the loaded script SHAs."""
    return RedisKeyValueStore(get_database_client_dependency())


@lru_cache()
def get_transfer_client() -> HttpFundsTransferClient:
    settings = get_settings_dependency()
    return HttpFundsTransferClient(
        settings.transfer_base_url, timeout=settings.transfer_timeout_seconds
    )


@lru_cache()
def get_qris_gateway_client() -> HttpQrisGatewayClient:
    settings = get_settings_dependency()
    return HttpQrisGatewayClient(
        settings.qris_gateway_url, timeout=settings.qris_gateway_timeout_seconds
    )


def get_snap_repository(
    store: KeyValueStore = Depends(get_key_value_store),
) -> SnapRepository:
    """Get snap repository."""
    return SnapRepositoryImpl(store)


def get_merchant_directory(
    store: KeyValueStore = Depends(get_key_value_store),
) -> MerchantDirectory:
    """Get merchant directory."""
    return MerchantDirectoryImpl(store)


def get_snap_ledger(
    snap_repository: SnapRepository = Depends(get_snap_repository),
    transfer_client: HttpFundsTransferClient = Depends(get_transfer_client),
    settings: Settings = Depends(get_settings_dependency),
) -> SnapLedger:
    """Get snap ledger."""
    return SnapLedger(
        snap_repository,
        transfer_client,
        max_attempts=settings.claim_max_attempts,
    )


def get_dispatch_service(
    merchant_directory: MerchantDirectory = Depends(get_merchant_directory),
    qris_gateway: HttpQrisGatewayClient = Depends(get_qris_gateway_client),
    settings: Settings = Depends(get_settings_dependency),
) -> PaymentDispatchService:
    """Get payment dispatch service."""
    return PaymentDispatchService(
        merchant_directory, qris_gateway, settings.vault_address
    )
