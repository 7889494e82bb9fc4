#!/usr/bin/env python
"""
Typed application settings.

``config.Config`` reads the environment once; ``load_app_settings`` turns
that into an ``AppSettings`` instance which is handed to service
constructors instead of having them reach back into the environment.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config import Config


class AppSettings(BaseModel):
    """Settings consumed by the song service and its collaborators."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    database_uri: str
    app_port: int = 8080

    # Metadata API
    external_api: str = ""
    metadata_timeout_seconds: float = Field(default=10.0, gt=0)

    # Listing
    default_page_size: int = Field(default=10, ge=1)

    auto_create_tables: bool = True

    @field_validator("external_api", mode="before")
    @classmethod
    def _strip_base_url(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value).strip().rstrip("/")

    @field_validator("metadata_timeout_seconds", mode="before")
    @classmethod
    def _coerce_timeout(cls, value: object) -> float:
        try:
            timeout = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 10.0
        # Never allow an unbounded wait on the upstream
        return timeout if timeout > 0 else 10.0


def load_app_settings(source: Optional[Mapping[str, Any]] = None,
                      overrides: Optional[Dict[str, Any]] = None) -> AppSettings:
    """Build settings from a Flask-style config mapping (defaults to ``Config``)."""
    if source is None:
        source = {key: getattr(Config, key) for key in dir(Config) if key.isupper()}
    data: Dict[str, Any] = {
        "database_uri": source.get("SQLALCHEMY_DATABASE_URI"),
        "app_port": source.get("APP_PORT", Config.APP_PORT),
        "external_api": source.get("EXTERNAL_API", Config.EXTERNAL_API),
        "metadata_timeout_seconds": source.get(
            "METADATA_API_TIMEOUT_SECONDS", Config.METADATA_API_TIMEOUT_SECONDS
        ),
        "default_page_size": source.get("DEFAULT_PAGE_SIZE", Config.DEFAULT_PAGE_SIZE),
        "auto_create_tables": source.get("AUTO_CREATE_TABLES", Config.AUTO_CREATE_TABLES),
    }
    if overrides:
        data.update(overrides)
    return AppSettings.model_validate(data)


__all__ = ["AppSettings", "load_app_settings"]
