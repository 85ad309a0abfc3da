"""
Configuration management using Pydantic Settings.
All parameters are loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CONCILIADOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: str = Field(default="development")
    app_log_level: str = Field(default="INFO")

    # Acquirer extract decoding
    default_layout: str = Field(default="v15")
    amount_epsilon_cents: int = Field(default=1)
    line_excerpt_length: int = Field(default=80)

    # Bank statement decoding
    txt_min_line_length: int = Field(default=20)
    txt_amount_width: int = Field(default=15)

    # Matching thresholds (0-100)
    min_candidate_score: int = Field(default=50)
    acceptance_score: int = Field(default=70)
    automatic_score: int = Field(default=90)

    # Acquirer date compared against the bank posting date
    acquirer_date_field: Literal["transaction_date", "payment_date"] = Field(
        default="transaction_date"
    )

    # Bank descriptions containing one of these are treated as acquirer credits
    brand_keywords: List[str] = Field(
        default_factory=lambda: ["cielo", "card", "cartao"]
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
