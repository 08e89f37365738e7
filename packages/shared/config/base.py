# shared/config/base.py

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Organization used for every request until multi-tenant auth lands.
DEFAULT_ORGANIZATION_ID = "00000000-0000-0000-0000-000000000001"


class BaseConfig(BaseSettings):
    """
    Base configuration shared by the API process and maintenance scripts.
    """

    # Project root directory, calculated automatically
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent.parent.resolve()

    # Environment Configuration
    ENVIRONMENT: str = "development"  # Options: development, production
    LOG_LEVEL: str = "INFO"

    # Tenancy
    DEFAULT_ORGANIZATION_ID: str = DEFAULT_ORGANIZATION_ID

    # File storage
    FILE_STORAGE_ENABLED: bool = True
    LOCAL_STORAGE_PATH: Path = Path("./uploads")

    # Pydantic model config
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def storage_root(self) -> Path:
        docker_uploads = Path("/app/uploads")
        if self.LOCAL_STORAGE_PATH == Path("./uploads") and docker_uploads.exists():
            return docker_uploads
        return self.LOCAL_STORAGE_PATH.expanduser().resolve()


class AtticConfig(BaseConfig):
    """Settings for the web API and the external import pipeline."""

    WEBUI_HOST: str = "0.0.0.0"
    WEBUI_PORT: int = 8080

    # Comma separated list of allowed browser origins
    CORS_ORIGINS: str = "http://localhost:5173,http://127.0.0.1:5173"

    # Import plugins
    ENABLE_IMPORT_PLUGINS: bool = True

    # Cover image ingestion
    IMAGE_DOWNLOAD_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    IMAGE_MAX_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]
