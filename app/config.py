"""Application configuration models."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


IMAGE_SIZES: dict[str, str] = {
    "poster": "w500",
    "backdrop": "w1280",
    "profile": "w185",
    "thumbnail": "w185",
}


@dataclass(frozen=True, slots=True)
class StorageKeys:
    """Record keys used for the persisted collections."""

    favorites: str
    watchlist: str
    preferences: str


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Cinemate", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")

    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_base_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_BASE_URL"
    )
    omdb_api_url: HttpUrl = Field(
        default="https://www.omdbapi.com", alias="OMDB_API_URL"
    )

    database_url: str = Field(
        default="sqlite:///./cinemate.db", alias="DATABASE_URL"
    )
    storage_key_prefix: str = Field(default="cinemate", alias="STORAGE_KEY_PREFIX")

    recommendation_count: int = Field(
        default=6, alias="RECOMMENDATION_COUNT", ge=0, le=20
    )
    top_cast_count: int = Field(default=8, alias="TOP_CAST_COUNT", ge=0, le=50)
    random_page_span: int = Field(default=10, alias="RANDOM_PAGE_SPAN", ge=1, le=500)

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("storage_key_prefix", mode="before")
    @classmethod
    def _normalise_prefix(cls, value: object) -> str:
        """Collapse the storage prefix into a lowercase slug without separators."""

        if value is None:
            return "cinemate"
        text = str(value).strip().strip("_").lower()
        text = "_".join(filter(None, text.replace("-", "_").split("_")))
        if not text:
            return "cinemate"
        if not all(char.isalnum() or char == "_" for char in text):
            raise ValueError("STORAGE_KEY_PREFIX may only contain letters, digits and underscores")
        return text

    @property
    def storage_keys(self) -> StorageKeys:
        """Return the prefixed record keys for every persisted collection."""

        prefix = self.storage_key_prefix
        return StorageKeys(
            favorites=f"{prefix}_favorites",
            watchlist=f"{prefix}_watchlist",
            preferences=f"{prefix}_preferences",
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
