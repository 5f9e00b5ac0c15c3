"""Configuration management for Defter."""

from decimal import Decimal
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .money import to_cents


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Suggested transfers below this amount are not shown
    min_transfer_amount: Decimal = Decimal("20")

    # Trust the sum of splits when a purchase's stored total disagrees with it
    trust_split_totals: bool = True

    # Display settings
    unknown_person_name: str = "Unknown"
    currency_code: str = "TRY"

    # Ledger snapshot used by the CLI when --file is not given
    snapshot_path: Path = Path("defter.json")

    @property
    def min_transfer_cents(self) -> int:
        """Visibility floor in cents."""
        return to_cents(self.min_transfer_amount)


def load_settings() -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings()
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the variables in your environment "
            f"or .env file.\n"
            f"Error: {e}"
        ) from e
