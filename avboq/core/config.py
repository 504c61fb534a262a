"""Application configuration settings.

This module defines the application-wide settings using Pydantic's BaseSettings.
It allows for loading configurations from environment variables and .env files,
providing type validation and default values.
"""

from pathlib import Path
from typing import Annotated

from pydantic import AliasChoices
from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import NoDecode

# Default list of CORS allowed origins
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
    "http://0.0.0.0:8000",
]

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "catalog.json"


class Settings(BaseSettings):
    """Manages application settings, loading them from environment variables or an .env file.

    Attributes:
        gemini_api_key: Credential for the hosted Gemini API. Read from GEMINI_API_KEY or API_KEY.
        text_model_id: Model used for quote generation, refinement and validation.
        image_model_id: Model used for room visualizations and schematics.
        lookup_model_id: Lightweight model used for search-grounded product lookups.
        quote_temperature: Sampling temperature for quote generation.
        image_aspect_ratio: Aspect ratio requested for generated images.
        image_mime_type: MIME type requested for generated images and used in data URIs.
        number_of_images: How many images to request per render call.
        catalog_path: Path to the JSON product catalog.
        strict_categories: Reject line items whose category is not in the known category list.
        service_api_key: Key clients must send in the 'X-API-Key' header.
        cors_allowed_origins: List of allowed origins for CORS.
        log_level: Level of the avboq package loggers.
    """

    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY"),
    )
    text_model_id: str = Field(default="gemini-2.5-pro")
    image_model_id: str = Field(default="imagen-4.0-generate-001")
    lookup_model_id: str = Field(default="gemini-2.5-flash")
    quote_temperature: float = Field(default=0.2)

    image_aspect_ratio: str = Field(default="16:9")
    image_mime_type: str = Field(default="image/jpeg")
    number_of_images: int = Field(default=1)

    catalog_path: Path = Field(default=DEFAULT_CATALOG_PATH)
    strict_categories: bool = Field(default=False)

    service_api_key: str | None = Field(default=None)

    cors_allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ORIGINS),
    )

    log_level: str = Field(default="DEBUG")

    model_config = {
        "env_file": ".env",
        "protected_namespaces": ("settings_",),
        "env_prefix": "",  # No prefix for environment variables
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("cors_allowed_origins", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: str | list[str] | None) -> list[str]:
        """Assembles the list of CORS allowed origins.

        If 'v' is a string, it splits it by commas. If 'v' is already a list,
        it's used directly. Otherwise, returns the default list of origins.
        """
        if isinstance(v, str) and v:
            return [origin.strip() for origin in v.split(",")]
        elif isinstance(v, list):
            return v
        return list(DEFAULT_CORS_ORIGINS)

    @field_validator("log_level", mode="before")  # type: ignore
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-cases the level name so LOG_LEVEL=info is accepted."""
        return v.upper() if isinstance(v, str) else v


settings = Settings()
