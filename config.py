"""Configuration settings for the irrigation backend."""
from typing import List, Optional, Union

from pydantic import ValidationError
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

from error_handler import ConfigurationMissingError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    port: int
    environment: str = "development"
    allowed_origins: str = ""  # comma-separated, used in production only
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Database credentials
    db_user: str
    db_password: str
    db_name: str
    db_host: str = "localhost"
    db_port: int = 5432
    # Full SQLAlchemy URL; overrides the credentials above when set
    database_url: Optional[str] = None

    # Token signing
    jwt_secret: str

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def sqlalchemy_url(self) -> Union[str, URL]:
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def cors_origins(self) -> List[str]:
        if self.environment != "production":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


def load_settings(**overrides) -> Settings:
    """
    Load settings, failing fast when required variables are absent.

    Raises:
        ConfigurationMissingError: Naming every missing variable
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        missing = [
            ".".join(str(part) for part in error["loc"]).upper()
            for error in exc.errors()
            if error["type"] == "missing"
        ]
        if missing:
            raise ConfigurationMissingError(missing) from exc
        raise
