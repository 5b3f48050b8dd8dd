"""Configuration management for the FURIPS admin service."""

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "furips-admin"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./data/furips.db"
    DATABASE_ECHO: bool = False

    # Auth Configuration
    AUTH_SECRET_KEY: str = "change-me"
    AUTH_ALGORITHM: str = "HS256"
    AUTH_TOKEN_EXPIRE_MINUTES: int = 8 * 60

    # Chunked Upload Configuration
    UPLOAD_TEMP_ROOT: str = ""  # Empty = system temp dir
    UPLOAD_RETENTION_HOURS: int = 24
    UPLOAD_SWEEP_INTERVAL_SECONDS: int = 15 * 60
    MAX_CHUNK_MB: int = 10

    # Storage Configuration
    STORAGE_BACKEND: str = "local"  # "gcs" or "local"
    GCP_PROJECT_ID: str = ""
    GCS_BUCKET_NAME: str = ""
    LOCAL_STORAGE_PATH: str = "./data/shipments"
    PRESIGNED_URL_EXPIRATION_MINUTES: int = 60
    PROVIDER_RETRY_ATTEMPTS: int = 3
    PROVIDER_RETRY_BACKOFF_SECONDS: float = 1.0
    SHIPMENT_FOLDER_DATE_PREFIX: bool = False

    # Archive Extraction Configuration
    ENABLE_ARCHIVE_EXTRACTION: bool = True
    MAX_FILES_PER_ARCHIVE: int = 5000
    MAX_EXTRACTED_FILE_SIZE_MB: int = 500

    # Shipment notification webhook (empty = disabled)
    UPLOAD_WEBHOOK_URL: str = ""
    WEBHOOK_TIMEOUT: int = 10  # seconds

    # Listing Configuration
    LOTES_MAX_RANGE_DAYS: int = 31

    @property
    def upload_scratch_root(self) -> Path:
        """Directory holding one sub-directory per in-progress upload."""
        base = self.UPLOAD_TEMP_ROOT or tempfile.gettempdir()
        return Path(base) / "furips-uploads"

    @property
    def max_chunk_bytes(self) -> int:
        """Convert MAX_CHUNK_MB to bytes."""
        return self.MAX_CHUNK_MB * 1024 * 1024

    @property
    def max_extracted_file_size_bytes(self) -> int:
        """Convert MAX_EXTRACTED_FILE_SIZE_MB to bytes."""
        return self.MAX_EXTRACTED_FILE_SIZE_MB * 1024 * 1024

    @property
    def upload_retention_seconds(self) -> int:
        return self.UPLOAD_RETENTION_HOURS * 3600


# Singleton settings instance
settings = Settings()
