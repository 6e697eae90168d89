"""
Configuration settings for sink-binder.

Uses Pydantic Settings to load environment variables for the destination
database, logging, and the sink behaviour the binder and writer depend on
(primary-key mode, insert mode, deletes, enum-set columns, batch size).
List-valued settings accept comma-separated strings: `PK_FIELDS=id,region`.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, List

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from sink_binder.domain.modes import InsertMode, PrimaryKeyMode

CommaList = Annotated[List[str], NoDecode]


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("sink", alias="DB_NAME")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Sink
    table_name: str = Field("records", alias="TABLE_NAME")
    pk_mode: PrimaryKeyMode = Field(PrimaryKeyMode.NONE, alias="PK_MODE")
    pk_fields: CommaList = Field(default_factory=list, alias="PK_FIELDS")
    fields_whitelist: CommaList = Field(default_factory=list, alias="FIELDS_WHITELIST")
    insert_mode: InsertMode = Field(InsertMode.INSERT, alias="INSERT_MODE")
    delete_enabled: bool = Field(False, alias="DELETE_ENABLED")
    delete_by_field: bool = Field(False, alias="DELETE_BY_FIELD")
    enum_sets: CommaList = Field(default_factory=list, alias="ENUM_SETS")
    batch_size: int = Field(3000, ge=1, alias="BATCH_SIZE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("pk_fields", "fields_whitelist", "enum_sets", mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @model_validator(mode="after")
    def _check_delete_mode(self) -> "Settings":
        if self.delete_by_field and not self.delete_enabled:
            raise ValueError("delete_by_field requires delete_enabled")
        if self.delete_enabled and self.pk_mode is not PrimaryKeyMode.RECORD_KEY:
            raise ValueError(
                f"Deletes are only supported for pk mode record_key, got {self.pk_mode.value}"
            )
        return self

    @property
    def dsn(self) -> str:
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
