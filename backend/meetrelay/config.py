"""Application configuration using Pydantic settings."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    database_url: str

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "development"

    # Security
    secret_key: str
    admin_email: Optional[str] = None
    admin_password_hash: Optional[str] = None  # bcrypt hash of the admin password

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:3001"

    # Links handed out by the calendar bridge
    public_base_url: str = "https://connect.example.com"

    # Redis (for ARQ worker)
    redis_url: str = "redis://127.0.0.1:6379"

    # Lifecycle notifications, posted by the worker
    notification_webhook_url: Optional[str] = None

    # Supabase Storage (recordings)
    supabase_url: Optional[str] = None
    supabase_secret_key: Optional[str] = None

    # Session defaults
    default_session_minutes: int = 60
    default_calendar_minutes: int = 120
    signaling_poll_interval_seconds: int = 2
    max_payload_bytes: int = 65536

    # Agent flow client calls carry only the session id unless this is set
    agent_flow_requires_password: bool = False

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]


settings = Settings()
