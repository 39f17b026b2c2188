from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchConfig(BaseSettings):
    """Configuration for fare quoting and aggregate caching.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Fare quoting (passed into FareQuoter at construction)
    hold_minutes: int = Field(default=15, alias="TRANSIT_HOLD_MINUTES")
    default_currency: str = Field(default="INR", alias="TRANSIT_DEFAULT_CURRENCY")

    # Operators aggregation cache
    operators_cache_ttl_seconds: int = Field(default=3600, alias="TRANSIT_OPERATORS_CACHE_TTL")


@lru_cache
def get_search_config() -> SearchConfig:
    """Get search configuration (cached singleton).

    Returns:
        SearchConfig with values from .env file or environment variables.
    """
    return SearchConfig()
