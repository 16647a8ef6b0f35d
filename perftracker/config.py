# config.py – Chargement des paramètres via pydantic-settings

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONCURRENCY = 20
MAX_CONCURRENCY = 100


class Settings(BaseSettings):
    # — Tokens & API Keys —
    RIOT_API_KEY: str

    # — Redis (hot tier) & Database (durable tier) —
    REDIS_URL: str = "redis://localhost:6379/0"
    DB_URL: str = "sqlite:///data/perftracker.db"

    LOG_LEVEL: str = "INFO"

    # — Fan-out & timeouts (secondes) —
    MATCH_FETCH_CONCURRENCY: int = DEFAULT_CONCURRENCY
    HTTP_TIMEOUT: float = 10.0
    CACHE_WRITE_TIMEOUT: float = 5.0
    DEADLINE_BASE: float = 50.0
    DEADLINE_PER_MATCH: float = 10.0

    # — TTL par type de ressource (secondes) —
    PUUID_TTL: int = 24 * 3600
    MATCH_IDS_TTL: int = 3600
    MATCH_DETAILS_TTL: int = 7 * 24 * 3600
    PERFORMANCE_TTL: int = 30 * 60
    POPULAR_ITEMS_TTL: int = 24 * 3600

    DEFAULT_MATCH_COUNT: int = 25
    MAX_MATCH_COUNT: int = 100
    POPULAR_ITEMS_COUNT: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("MATCH_FETCH_CONCURRENCY", mode="before")
    @classmethod
    def _clamp_concurrency(cls, value):
        # valeur invalide ou hors bornes → défaut
        try:
            limit = int(value)
        except (TypeError, ValueError):
            return DEFAULT_CONCURRENCY
        if limit <= 0 or limit > MAX_CONCURRENCY:
            return DEFAULT_CONCURRENCY
        return limit

    def request_deadline(self, count: int) -> float:
        """Budget total d'une requête : base + allocation par match."""
        return self.DEADLINE_BASE + self.DEADLINE_PER_MATCH * count


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
