import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

_CONFIG_PATH = os.getenv("FILEBOX_CONFIG", "config.toml")
_ENV_PATH = os.getenv("FILEBOX_ENV", ".env")


class AccountSettings(BaseModel):
    id: str
    email: str
    password_hash: str  # argon2, see `python -m filebox.commands hash-password`

    @field_validator("password_hash")
    @classmethod
    def must_be_argon2(cls, value: str) -> str:
        if not value.startswith("$argon2"):
            raise ValueError("password_hash must be an argon2 hash, not a password")
        return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FILEBOX_",
        env_nested_delimiter="__",
        toml_file=_CONFIG_PATH,
        env_file=_ENV_PATH,
    )

    host: str = "127.0.0.1"
    port: int = 5700

    storage_root: Path = Field(default=Path("storage"))
    public_base_url: str = "http://127.0.0.1:5700/blobs"
    logs_dir: Path = Field(default=Path("logs"))
    preferences_file: Path = Field(default=Path("preferences.json"))

    upload_chunk_size: int = 256 * 1024
    storage_limit: int = 5 * 1024 * 1024 * 1024  # 5GB

    accounts: list[AccountSettings] = Field(default_factory=list)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Source order: init args > OS env > .env > config.toml > secrets
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


settings = Settings()
