"""
Configuration management using Pydantic Settings.
Loads reporter configuration from environment variables with validation.
"""
from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional

# Load .env file into os.environ so all nested BaseSettings pick up values
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)


class ReporterSettings(BaseSettings):
    """Reporter identity and flush schedule"""
    host: Optional[str] = Field(default=None)
    tags: str = Field(default="")
    flush_interval_seconds: float = Field(default=10.0, gt=0)

    class Config:
        env_prefix = "METRICS_"

    @property
    def tag_list(self) -> List[str]:
        """Comma-separated ``tags`` as a list, blanks dropped."""
        return [t.strip() for t in self.tags.split(",") if t.strip()]


class TransportSettings(BaseSettings):
    """Monitoring backend connection"""
    api_key: Optional[str] = Field(default=None)
    endpoint: str = Field(default="https://app.datadoghq.com/api/v1")
    timeout_seconds: float = Field(default=10.0, gt=0)

    class Config:
        env_prefix = "DATADOG_"


class MonitoringSettings(BaseSettings):
    """Self-monitoring (Prometheus) configuration"""
    metrics_port: int = Field(default=9090)
    metrics_enabled: bool = Field(default=False)

    class Config:
        env_prefix = ""


class LoggingSettings(BaseSettings):
    """Logging configuration"""
    level: str = Field(default="INFO")

    class Config:
        env_prefix = "LOG_"


class Settings(BaseSettings):
    """Main settings aggregating all configuration sections"""
    reporter: ReporterSettings = Field(default_factory=ReporterSettings)
    transport: TransportSettings = Field(default_factory=TransportSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        extra = "ignore"


# Singleton instance - import this in other modules
try:
    settings = Settings()
except Exception as e:
    # During testing or initial setup, settings might not be fully configured
    print(f"Warning: Could not load settings: {e}")
    settings = None
