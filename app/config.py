"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This keeps secrets out of source code: the .env file is gitignored
and only the deployment environment knows the real card encryption secret.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from app.config import settings
    print(settings.CARD_NUMBER_BIN)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Bank Cards API.

    Required fields (no defaults) MUST be set in .env or environment:
      - CARD_ENCRYPTION_SECRET: Secret the card field cipher key is derived from
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Bank Cards API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Database ---
    # SQLite for local runs; swap to a postgresql+asyncpg URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./bankcards.db"

    # --- Card data protection ---
    # REQUIRED: hashed with SHA-256 to derive the AES-SIV key for card numbers and CVVs.
    # Rotating it makes every stored card unreadable, so treat it like a master key.
    CARD_ENCRYPTION_SECRET: str

    # --- Card issuing ---
    # Issuer prefix (BIN) for generated card numbers: 6 digits
    CARD_NUMBER_BIN: str = "400000"
    # Upper bound on regenerate-on-collision attempts when allocating a card number
    CARD_NUMBER_MAX_ATTEMPTS: int = 10

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
