from pydantic import Field, AliasChoices, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Any, Optional, Union


class Settings(BaseSettings):
    PROJECT_NAME: str = "Shop Query Engine"
    VERSION: str = "0.3.0"

    # Database
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "changethis"
    POSTGRES_DB: str = "shop"
    POSTGRES_PORT: int = 5432
    SQLALCHEMY_DATABASE_URI: Optional[Union[PostgresDsn, str]] = Field(default=None, validate_default=True)
    SQL_ECHO: bool = False

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info) -> Any:
        if isinstance(v, str):
            return v
        data = info.data if hasattr(info, "data") else {}
        if not data.get("POSTGRES_SERVER"):
            return "sqlite+aiosqlite:///./data/shop.db"

        return f"postgresql+asyncpg://{data.get('POSTGRES_USER')}:{data.get('POSTGRES_PASSWORD')}@{data.get('POSTGRES_SERVER')}:{data.get('POSTGRES_PORT')}/{data.get('POSTGRES_DB') or ''}"

    # Query engine limits
    DEFAULT_ROW_CAP: int = Field(default=1000, ge=1)
    MAX_ROW_CAP: int = Field(default=10000, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = Field(
        default=True,
        validation_alias=AliasChoices("LOG_JSON", "JSON_LOGS"),
    )

    AUTO_MIGRATE: bool = False

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
