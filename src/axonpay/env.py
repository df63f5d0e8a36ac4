from __future__ import annotations

import os

from pydantic import BaseModel, field_validator

from .codec.classifier import is_address


class Settings(BaseModel):
    """Typed application settings built from environment variables."""

    # Database settings
    database_url: str = "redis://localhost:6379/0"

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_workers: int = 1
    api_cors_origins: list[str] = ["*"]

    # Application settings
    app_name: str = "AxonPay"
    app_version: str = "1.0.0"

    # Collaborators
    transfer_base_url: str = "http://localhost:8100"
    transfer_timeout_seconds: float = 30.0
    qris_gateway_url: str = "http://localhost:8200"
    qris_gateway_timeout_seconds: float = 15.0
    vault_address: str = "0x924696133b40C5f191Fbc797c7008d6C24BEe3Cf"

    # Snap ledger
    claim_max_attempts: int = 16

    @field_validator("vault_address")
    @classmethod
    def validate_vault_address(cls, v: str) -> str:
        if not is_address(v):
            raise ValueError(f"Invalid vault address: {v}")
        return v

    @field_validator("claim_max_attempts")
    @classmethod
    def validate_claim_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("claim_max_attempts must be at least 1")
        return v


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


def get_settings() -> Settings:
    """Return typed settings instance sourced from AXONPAY_* env vars."""
    defaults = Settings()
    return Settings(
        database_url=os.environ.get("AXONPAY_DATABASE_URL", defaults.database_url),
        api_host=os.environ.get("AXONPAY_API_HOST", defaults.api_host),
        api_port=int(os.environ.get("AXONPAY_API_PORT", str(defaults.api_port))),
        api_debug=_flag("AXONPAY_API_DEBUG"),
        api_workers=int(os.environ.get("AXONPAY_API_WORKERS", str(defaults.api_workers))),
        api_cors_origins=os.environ.get("AXONPAY_API_CORS_ORIGINS", "*").split(","),
        app_name=os.environ.get("AXONPAY_APP_NAME", defaults.app_name),
        app_version=os.environ.get("AXONPAY_APP_VERSION", defaults.app_version),
        transfer_base_url=os.environ.get(
            "AXONPAY_TRANSFER_BASE_URL", defaults.transfer_base_url
        ),
        transfer_timeout_seconds=float(
            os.environ.get(
                "AXONPAY_TRANSFER_TIMEOUT_SECONDS",
                str(defaults.transfer_timeout_seconds),
            )
        ),
        qris_gateway_url=os.environ.get(
            "AXONPAY_QRIS_GATEWAY_URL", defaults.qris_gateway_url
        ),
        qris_gateway_timeout_seconds=float(
            os.environ.get(
                "AXONPAY_QRIS_GATEWAY_TIMEOUT_SECONDS",
                str(defaults.qris_gateway_timeout_seconds),
            )
        ),
        vault_address=os.environ.get("AXONPAY_VAULT_ADDRESS", defaults.vault_address),
        claim_max_attempts=int(
            os.environ.get(
                "AXONPAY_CLAIM_MAX_ATTEMPTS", str(defaults.claim_max_attempts)
            )
        ),
    )
