from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class StartupConfigError(Exception):
    """Raised when required configuration is missing or invalid. Fatal at startup."""


class Settings(BaseSettings):
    """
    Process-wide configuration, read once from the environment and an optional .env file.

    Attributes:
        sheet_id: Spreadsheet identifier (SHEET_ID), required
        api_key: Google API key (API_KEY), required
        sheet_name: Tab to read (SHEET_NAME)
        port: Listening port (PORT)
        sheet_format: Upstream response shape, "grid" or "values" (SHEET_FORMAT)
        cors_origins: Comma-separated allowed origins (CORS_ORIGINS)
        upstream_timeout: Seconds before the upstream call is abandoned (UPSTREAM_TIMEOUT), no timeout when unset
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sheet_id: str = Field(min_length=1, validation_alias=AliasChoices("SHEET_ID", "sheet_id"))
    api_key: str = Field(min_length=1, validation_alias=AliasChoices("API_KEY", "api_key"))
    sheet_name: str = Field(
        default="Sheet1",
        min_length=1,
        validation_alias=AliasChoices("SHEET_NAME", "sheet_name"),
    )
    port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "port"))
    sheet_format: Literal["grid", "values"] = Field(
        default="grid",
        validation_alias=AliasChoices("SHEET_FORMAT", "sheet_format"),
    )
    cors_origins: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGINS", "cors_origins"))
    upstream_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("UPSTREAM_TIMEOUT", "upstream_timeout"),
    )

    @property
    def cors_origin_list(self) -> list:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def load_settings(**overrides) -> Settings:
    """
    Load settings, converting validation failures into StartupConfigError.

    Args:
        **overrides: Passed to Settings, e.g. ``_env_file=None`` to skip .env

    Raises:
        StartupConfigError: If SHEET_ID or API_KEY is missing, or any value is invalid
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = ", ".join(
            str(error["loc"][0]) if error.get("loc") else "settings" for error in e.errors()
        )
        raise StartupConfigError(
            f"FATAL ERROR: invalid or missing configuration ({fields}). "
            "Set SHEET_ID and API_KEY in the environment or .env file."
        ) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
