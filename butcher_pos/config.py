"""Application configuration management."""
from decimal import Decimal
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "Butcher POS"
    app_env: str = "development"
    debug: bool = False

    # Database
    db_url: str = "sqlite:///./data/pos.db"

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Scale barcode (TM-F labels)
    scale_barcode_length: int = 18
    scale_flag_digit: str = "0"
    validate_scale_checksum: bool = False

    # Batch matching tolerances (strict less-than)
    weight_tolerance_kg: Decimal = Decimal("0.001")
    price_tolerance_bs: Decimal = Decimal("0.01")

    # Scale label price vs catalog price audit threshold (Bs)
    scale_price_variance_bs: Decimal = Decimal("1")

    # Catalog search
    search_score_cutoff: int = 70
    search_limit: int = 20

    # Terminal identity stamped on settled sales
    terminal_id: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
