
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "Approvisionnements API"
    app_env: str = "development"
    frontend_url: str = "http://localhost:4200"

    # Data access strategy: in-process fixture, JSON-Server, or SQL database
    data_backend: Literal["memory", "remote", "sql"] = Field(
        default="memory", alias="DATA_BACKEND",
    )

    # JSON-Server collaborator (remote backend)
    json_server_url: str = Field(default="http://localhost:3000", alias="JSON_SERVER_URL")
    json_server_timeout: float = Field(default=10.0, alias="JSON_SERVER_TIMEOUT")

    # Database (sql backend)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./appro_dev.db",
        alias="DATABASE_URL",
    )

    # Reference codes: APP-YYYYMM-NNN
    reference_prefix: str = Field(default="APP", alias="REFERENCE_PREFIX")
    reference_retry_limit: int = Field(
        default=3, alias="REFERENCE_RETRY_LIMIT",
    )  # attempts before a duplicate reference becomes fatal

    # List pagination
    default_page_size: int = Field(default=5, alias="DEFAULT_PAGE_SIZE")
    max_page_size: int = Field(default=200, alias="MAX_PAGE_SIZE")
    max_visible_pages: int = Field(default=5, alias="MAX_VISIBLE_PAGES")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

settings = Settings()
