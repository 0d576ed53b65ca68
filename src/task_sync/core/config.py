"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Remote store - REST tables under /rest/v1, auth under /auth/v1 (relative to store_url)
    store_url: str = Field(
        default="http://localhost:54321",
        validation_alias="TASK_STORE_URL",
    )
    store_api_key: str = Field(default="", validation_alias="TASK_STORE_API_KEY")
    store_timeout: float = Field(default=30.0, validation_alias="TASK_STORE_TIMEOUT")

    tasks_table: str = Field(default="tasks", validation_alias="TASK_STORE_TASKS_TABLE")
    profiles_table: str = Field(
        default="profiles", validation_alias="TASK_STORE_PROFILES_TABLE",
    )

    # Field length limits, counted in code points after trimming
    max_title_length: int = Field(default=200, validation_alias="MAX_TITLE_LENGTH")
    max_description_length: int = Field(
        default=1000, validation_alias="MAX_DESCRIPTION_LENGTH",
    )
    min_full_name_length: int = Field(default=2, validation_alias="MIN_FULL_NAME_LENGTH")
    max_full_name_length: int = Field(default=100, validation_alias="MAX_FULL_NAME_LENGTH")

    @model_validator(mode="after")
    def validate_length_limits(self) -> "Settings":
        """Reject non-positive limits and an inverted full name range."""
        limits = {
            "max_title_length": self.max_title_length,
            "max_description_length": self.max_description_length,
            "min_full_name_length": self.min_full_name_length,
            "max_full_name_length": self.max_full_name_length,
        }
        for name, value in limits.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive (got {value}).")
        if self.min_full_name_length > self.max_full_name_length:
            raise ValueError(
                f"min_full_name_length ({self.min_full_name_length}) cannot exceed "
                f"max_full_name_length ({self.max_full_name_length}).",
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
