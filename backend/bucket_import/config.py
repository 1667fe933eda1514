"""
Configuration for the import service.

Values come from BUCKET_IMPORT_* environment variables (or a .env file).
Only the HTTP layer and the import service client read settings; the
parser, mapper and assembler take none.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ImportSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BUCKET_IMPORT_",
        env_file=".env",
        extra="ignore",
    )

    api_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the ledger backend that owns /imports",
    )
    request_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout in seconds for calls to the ledger backend",
    )
    cors_origins: List[str] = Field(
        default=["http://localhost:13030"],
        description="Origins allowed to call this API from a browser",
    )
    log_level: str = Field(default="INFO")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache()
def get_settings() -> ImportSettings:
    return ImportSettings()
