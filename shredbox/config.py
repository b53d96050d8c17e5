"""Application settings.

Values come from constructor arguments, then ``SHREDBOX_*`` environment
variables, then ``config.toml``. The TOML keys are the historical ones
(``webroot``, ``lport``, ``vhost``, ``dbfile``, ``filelen``, ``folder``,
``default_ttl``, ``maximum_ttl``).
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

CONFIG_FILE_ENV = "SHREDBOX_CONFIG_FILE"

# No i, l, o, I, O: easy to misread in a URL.
DEFAULT_ALPHABET = "abcdefghjkmnpqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ0123456789"


class Settings(BaseSettings):
    webroot: Path = Path("www")
    host: str = "0.0.0.0"
    lport: int = 8080
    vhost: str = "localhost:8080"
    dbfile: Path = Path("shredbox.db")
    database_url: str | None = None
    filelen: int = 6
    folder: Path = Path("uploads")
    default_ttl: int = 86400
    maximum_ttl: int = 432000

    name_alphabet: str = DEFAULT_ALPHABET
    min_name_length: int = 3
    max_name_length: int = 128
    compressed_suffix: str = ".5000"
    max_upload_bytes: int = 100 * 1024 * 1024

    reap_interval: float = 5.0
    shred_passes: int = 7
    embedded_reaper: bool = True

    celery_broker_url: str = "redis://redis:6379/0"
    celery_result_backend: str = "redis://redis:6379/1"

    model_config = SettingsConfigDict(env_prefix="SHREDBOX_", extra="ignore")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_file = Path(os.getenv(CONFIG_FILE_ENV, "config.toml"))
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
        )

    @model_validator(mode="after")
    def _check_bounds(self) -> "Settings":
        if self.min_name_length < 1 or self.min_name_length > self.max_name_length:
            raise ValueError("min_name_length must be between 1 and max_name_length")
        if not self.min_name_length <= self.filelen <= self.max_name_length:
            raise ValueError(
                f"filelen must lie in [{self.min_name_length}, {self.max_name_length}]"
            )
        if self.maximum_ttl < 1:
            raise ValueError("maximum_ttl must be positive")
        if not 1 <= self.default_ttl <= self.maximum_ttl:
            raise ValueError("default_ttl must lie in [1, maximum_ttl]")
        if len(set(self.name_alphabet)) < 2:
            raise ValueError("name_alphabet needs at least two distinct characters")
        if any(not (c.isascii() and (c.isalnum() or c in "-_")) for c in self.name_alphabet):
            raise ValueError("name_alphabet may only hold ASCII letters, digits, - and _")
        if self.shred_passes < 1:
            raise ValueError("shred_passes must be positive")
        return self

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.dbfile}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
