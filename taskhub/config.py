"""Settings loaded from environment variables and an optional ``.env`` file."""

from fastapi import Request
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./taskhub.db")

    # Runtime
    environment: str = Field(default="production")
    log_level: str = Field(default="INFO")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000)

    # Listing
    default_page_limit: int = Field(default=10, ge=1)
    max_page_limit: int = Field(default=100, ge=1)

    @property
    def debug(self) -> bool:
        return self.environment == "development"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
