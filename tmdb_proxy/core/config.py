"""
Common Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class BaseAppConfig(BaseSettings):
    """
    Common application settings.
    """

    LOG_LEVEL: str = Field(default="INFO", description="Log level")
    LOG_CONFIG_PATH: str = Field(
        default="proxy_log.yaml", description="YAML logging config path (relative paths fall back to the package)"
    )
    VICTORIALOGS_URL: str = Field(default="", description="VictoriaLogs ingestion URL")

    # Upstream is a public TLS host
    VERIFY_SSL: bool = Field(default=True, description="Whether to verify SSL certificates")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )
