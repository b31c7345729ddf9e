from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )
    # Application
    app_name: str = "Sprint Prioritization Survey"
    app_version: str = "2.0.0"
    debug: bool = Field(default=False, env="DEBUG")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./sprint_prioritization.db",
        env="DATABASE_URL"
    )
    database_echo: bool = Field(default=False, env="DATABASE_ECHO")

    # CORS
    allowed_origins: List[str] = Field(default=["*"], env="ALLOWED_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, env="LOG_FILE")

    # Submission defaults
    default_sprint_number: int = Field(default=23, env="DEFAULT_SPRINT_NUMBER")
    default_form_version: str = Field(default="v2.0-with-priority", env="DEFAULT_FORM_VERSION")
    processing_version: str = "api-v2.0"
    retention_days: int = Field(default=365, env="RETENTION_DAYS")  # drives the ttl field

    # Query
    default_query_limit: int = Field(default=50, env="DEFAULT_QUERY_LIMIT")
    max_query_limit: int = Field(default=1000, env="MAX_QUERY_LIMIT")

    # External sinks
    # Power Automate (SharePoint list)
    power_automate_url: Optional[str] = Field(default=None, env="POWER_AUTOMATE_URL")

    # Excel workbook via Microsoft Graph
    graph_site_id: Optional[str] = Field(default=None, env="GRAPH_SITE_ID")
    graph_drive_id: Optional[str] = Field(default=None, env="GRAPH_DRIVE_ID")
    graph_file_id: Optional[str] = Field(default=None, env="GRAPH_FILE_ID")
    graph_worksheet: str = Field(default="Sheet1", env="GRAPH_WORKSHEET")
    graph_table: str = Field(default="Table1", env="GRAPH_TABLE")
    graph_access_token: Optional[str] = Field(default=None, env="GRAPH_ACCESS_TOKEN")

    sink_timeout: int = Field(default=30, env="SINK_TIMEOUT")  # seconds


# Environment-specific configurations
class DevelopmentConfig(Settings):
    debug: bool = True
    log_level: str = "DEBUG"


class ProductionConfig(Settings):
    debug: bool = False
    database_echo: bool = False
    log_level: str = "WARNING"


class TestingConfig(Settings):
    database_url: str = "sqlite+aiosqlite:///:memory:"
    power_automate_url: Optional[str] = None
    graph_access_token: Optional[str] = None


def get_settings() -> Settings:
    """Factory function to get settings based on environment"""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        return ProductionConfig()
    elif env == "testing":
        return TestingConfig()
    else:
        return DevelopmentConfig()


# Global settings instance
settings = get_settings()
