"""Configuration management for pbirdoc."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables (PBIRDOC_*)."""

    # Reading
    max_workers: int = 8
    encoding: str = "utf-8-sig"  # PBIR files are often saved with a BOM

    # Title resolution
    title_max_length: int = 50
    title_placeholder: str = "Title"
    id_prefix_length: int = 8

    # Type resolution
    custom_visual_min_length: int = 30

    # Validation
    schema_dir: Optional[Path] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "PBIRDOC_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
