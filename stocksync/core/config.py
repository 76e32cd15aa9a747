# stocksync/core/config.py

import os
from functools import lru_cache
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


def _env_file() -> Optional[str]:
    """ENV_FILE if set, otherwise .env; None when the chosen file does not exist"""
    path = os.environ.get('ENV_FILE', '.env')
    return path if os.path.exists(path) else None


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # ERP (source of truth for stock)
    ERP_BASE_URL: str = ""
    ERP_USERNAME: str = ""
    ERP_PASSWORD: str = ""
    RUT_EMPRESA: str = ""
    ERP_TOKEN_TTL_SECONDS: int = 3600  # ERP tokens last 1 hour

    # MercadoLibre OAuth
    MERCADOLIBRE_CLIENT_ID: str = ""
    MERCADOLIBRE_CLIENT_SECRET: str = ""
    MERCADOLIBRE_ACCESS_TOKEN: str = ""
    MERCADOLIBRE_REFRESH_TOKEN: str = ""
    MERCADOLIBRE_USER_ID: Optional[str] = None
    MERCADOLIBRE_API_BASE_URL: str = "https://api.mercadolibre.com"
    MERCADOLIBRE_TOKEN_TTL_SECONDS: int = 21600  # 6 hours unless the token endpoint says otherwise

    # HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Stock sync defaults
    SYNC_CONCURRENCY: int = 5
    SYNC_MAX_RETRIES: int = 3
    SYNC_RETRY_DELAY_SECONDS: float = 2.0
    CATALOG_PAGE_SIZE: int = 50  # MercadoLibre maximum for items/search

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=_env_file(),
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()

def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
