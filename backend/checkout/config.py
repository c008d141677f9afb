"""
Checkout Configuration Module

Loads environment variables for backend configuration: payment gateway
credentials, settlement polling budget, order fees and storage.
"""
from decimal import Decimal
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Gateway Notes:
    - Keys are issued per merchant by the payment gateway (sandbox by default)
    - The integrity key is optional; when set, charges are signed
    - gateway_mode "fake" swaps the HTTP client for the in-process fake gateway
    """

    # Payment Gateway
    gateway_mode: Literal["fake", "wompi"] = "fake"
    wompi_base_url: str = "https://api-sandbox.co.uat.wompi.dev/v1"
    wompi_public_key: str = ""
    wompi_private_key: str = ""
    wompi_integrity_key: str = ""
    wompi_currency: str = "COP"

    # Timeouts (seconds)
    wompi_request_timeout: float = 30.0
    wompi_polling_interval: float = 2.0
    wompi_polling_timeout: float = 30.0

    # Flat fees added to every order, in currency units
    base_fee: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Database
    database_path: str = "./checkout.db"
    seed_products: bool = True

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
