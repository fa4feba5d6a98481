"""Storefront Configuration"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

# Resolve the .env file relative to the project root, not the working directory
env_path = Path(__file__).resolve().parent.parent.parent / "config" / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "ArtVista Storefront"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"

    # Store
    store_name: str = "ArtVista"
    currency: str = "INR"
    checkout_description: str = "Purchase of artwork(s)"
    checkout_theme_color: str = "#6c5ce7"

    # Razorpay
    razorpay_key_id: Optional[str] = None
    razorpay_key_secret: Optional[str] = None
    razorpay_checkout_url: str = "https://checkout.razorpay.com/v1/checkout.js"
    gateway_timeout_seconds: float = 10.0

    # Orders
    payment_attempt_timeout_seconds: int = 900
    order_id_max_attempts: int = 3
    order_history_page_size: int = 10
    order_history_max_page_size: int = 50

    # Sessions
    session_max_age_hours: int = 24

    class Config:
        env_file = str(env_path)
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def gateway_signature_enabled(self) -> bool:
        """Check if success callbacks must carry a verifiable signature"""
        return bool(self.razorpay_key_secret)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
