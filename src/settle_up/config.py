"""Configuration management for SettleUp."""

from decimal import Decimal
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .models import (
    SELF_DISPLAY_NAME,
    TRIP_FUND_ID,
    UNKNOWN_PARTICIPANT_NAME,
    USER_SELF_ID,
)
from .money import DEFAULT_PLACES, TOLERANCE


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLE_UP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Reserved participants
    self_participant_id: str = USER_SELF_ID
    self_display_name: str = SELF_DISPLAY_NAME
    unknown_participant_name: str = UNKNOWN_PARTICIPANT_NAME
    trip_fund_id: str = TRIP_FUND_ID

    # Money
    tolerance: Decimal = TOLERANCE  # residual treated as rounding noise
    currency_places: int = DEFAULT_PLACES
    default_currency: str = "INR"

    # Ledger file used by the command line tool
    ledger_path: Path = Path.home() / ".settle_up" / "ledger.json"

    def __init__(self, **kwargs):
        """Initialize settings and create the ledger directory if needed."""
        super().__init__(**kwargs)
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)


def load_settings(**overrides) -> Settings:
    """Load application settings from environment variables."""
    try:
        return Settings(**overrides)
    except Exception as e:
        raise ConfigurationError(
            f"Failed to load settings. Check the SETTLE_UP_* variables in your "
            f"environment or .env file.\n"
            f"Error: {e}"
        ) from e
