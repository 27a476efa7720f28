"""Configuration management for InstaDream.

This module provides centralized configuration management using Pydantic
Settings.  All configuration is loaded from environment variables with the
INSTADREAM_ prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (INSTADREAM_* prefix)
2. .env file in the project root
3. Default values defined in InstadreamConfig

Example .env file:
    INSTADREAM_REPLICATE_API_TOKEN=r8_...
    INSTADREAM_GEMINI_API_KEY=...
    INSTADREAM_STORAGE_ENDPOINT=minio.local
    INSTADREAM_STORAGE_ACCESS_KEY=...
    INSTADREAM_STORAGE_SECRET_KEY=...

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from instadream.core.config import config

    print(config.storage_bucket)
    print(config.database_path)
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ImageModelAlias = Literal["SEEDREAM_4", "FLUX_PRO", "FLUX_DEV", "FLUX_SCHNELL", "SDXL"]
AspectRatio = Literal["1:1", "16:9", "9:16", "4:5", "5:4"]


class InstadreamConfig(BaseSettings):
    """Main configuration for InstaDream.

    Values are loaded from environment variables with the INSTADREAM_ prefix,
    with fallback to the defaults defined here.

    Attributes
    ----------
    Paths:
        data_dir : Path
            Directory holding the SQLite history database
        database_path : Path
            SQLite database file for generated posts

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)

    Image Generation (Replicate):
        replicate_api_token : str
            API token sent as a Bearer credential
        replicate_base_url : str
            Replicate REST API root
        image_model : ImageModelAlias
            Default model alias for post images
        image_aspect_ratio : AspectRatio
            Default aspect ratio (square suits the Instagram feed)
        image_timeout : float
            Seconds to wait for a synchronous prediction

    Captions (Gemini):
        gemini_api_key : str
            Google Generative Language API key
        caption_model : str
            Gemini model used for captions
        caption_temperature : float
            Sampling temperature (0.0-2.0)

    Object Storage (S3-compatible):
        storage_endpoint, storage_port, storage_use_ssl, storage_access_key,
        storage_secret_key, storage_bucket, storage_region

    History:
        posts_default_limit : int
            Page size for ``GET /api/posts`` when no limit is given

    Notes
    -----
    - ``data_dir`` is created automatically if it doesn't exist
    - Configuration is immutable after initialization
    - To modify config, set environment variables and restart the application
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INSTADREAM_",
        case_sensitive=False,
    )

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for the history database",
    )
    database_path: Path = Field(
        default=Path("data/instadream.db"),
        description="SQLite database file for generated posts",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )

    # Image generation
    replicate_api_token: str = Field(default="", description="Replicate API token")
    replicate_base_url: str = Field(
        default="https://api.replicate.com/v1",
        description="Replicate REST API root",
    )
    image_model: ImageModelAlias = Field(
        default="SEEDREAM_4",
        description="Default image model alias",
    )
    image_aspect_ratio: AspectRatio = Field(
        default="1:1",
        description="Default aspect ratio for post images",
    )
    image_timeout: float = Field(
        default=120.0,
        description="Seconds to wait for an image prediction",
        gt=0,
    )

    # Caption generation
    gemini_api_key: str = Field(default="", description="Gemini API key")
    caption_model: str = Field(
        default="gemini-2.0-flash-exp",
        description="Gemini model used for captions",
    )
    caption_temperature: float = Field(
        default=0.8,
        description="Sampling temperature for captions",
        ge=0.0,
        le=2.0,
    )

    # Object storage
    storage_endpoint: str = Field(default="localhost", description="Object store host")
    storage_port: int = Field(default=9000, description="Object store port", ge=1, le=65535)
    storage_use_ssl: bool = Field(default=False, description="Use HTTPS for the object store")
    storage_access_key: str = Field(default="", description="Object store access key")
    storage_secret_key: str = Field(default="", description="Object store secret key")
    storage_bucket: str = Field(default="instadream", description="Bucket for post images")
    storage_region: str = Field(default="us-east-1", description="Bucket region")

    # History
    posts_default_limit: int = Field(
        default=50,
        description="Default number of posts returned by the history listing",
        ge=1,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (INSTADREAM_* prefix) and .env file.
config = InstadreamConfig()
