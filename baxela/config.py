"""Service configuration, read from the environment (or a local ``.env``)."""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

PLACEHOLDER_API_KEY = "your-pinata-api-key-here"
PLACEHOLDER_API_SECRET = "your-pinata-api-secret-here"

DEFAULT_ADMIN_ADDRESSES = (
    "0x1234567890123456789012345678901234567890,"
    "0x2345678901234567890123456789012345678901"
)


def split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Runtime settings. Every field maps to the upper-cased env variable."""

    # Pinning provider (Pinata)
    pinata_api_key: str = ""
    pinata_api_secret: str = ""
    pinata_api_url: str = "https://api.pinata.cloud"
    pinata_gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    http_timeout_seconds: float = 30.0

    # Comma separated wallet addresses allowed to act as admins
    admin_addresses: str = DEFAULT_ADMIN_ADDRESSES

    # Storage: in-memory unless a MongoDB url is given
    database_url: Optional[str] = None
    database_name: str = "baxela"
    seed_data: bool = True

    # Payments
    payment_mode: str = "simulated"
    payment_delay_seconds: float = 2.0
    payment_rpc_url: str = "https://mainnet.base.org"
    payment_contract_address: str = "0x0000000000000000000000000000000000000000"
    payment_from_address: str = "0x742d35Cc6634C0532925a3b8D4C9db96C4b5Da5e"

    # HTTP / logging
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: str = "*"
    log_level: str = "info"
    log_json: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def admin_address_list(self) -> List[str]:
        return split_csv(self.admin_addresses)

    @property
    def cors_origin_list(self) -> List[str]:
        return split_csv(self.cors_origins) or ["*"]

    @property
    def pinning_configured(self) -> bool:
        return bool(
            self.pinata_api_key
            and self.pinata_api_secret
            and self.pinata_api_key != PLACEHOLDER_API_KEY
            and self.pinata_api_secret != PLACEHOLDER_API_SECRET
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
