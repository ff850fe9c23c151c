from typing import Literal

from pydantic.types import PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict

Scheme = Literal["identity", "legacy_sha1"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CREDHASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Scheme used for new hashes
    # schemes: identity, legacy_sha1
    DEFAULT_SCHEME: Scheme = "identity"

    # Identity hasher
    # modes: v2, v3
    IDENTITY_COMPATIBILITY_MODE: Literal["v2", "v3"] = "v3"
    IDENTITY_ITERATION_COUNT: PositiveInt = 10000

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


settings = Settings()
