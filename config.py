"""Configuration module for Voice Reminder Service.

This module provides configuration settings using Pydantic Settings.
Environment variables can be used to override default values.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings for Voice Reminder Service.

    All settings can be overridden via environment variables.
    Example: export NOTIFICATION_PERMISSION="denied"
    """

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./reminders.db"
    """Database connection URL. Default: SQLite file in current directory"""

    # API Server Configuration
    API_HOST: str = "0.0.0.0"
    """API server host address"""

    API_PORT: int = 8005
    """API server port"""

    # MCP Server Configuration
    MCP_HOST: str = "127.0.0.1"
    """MCP server host address"""

    MCP_PORT: int = 8006
    """MCP server port for SSE transport (separate from REST API)"""

    MCP_TRANSPORT: str = "sse"
    """MCP transport type: 'stdio' for local, 'sse' for network access"""

    # General Configuration
    LOG_LEVEL: str = "INFO"
    """Log level for service loggers (DEBUG, INFO, WARNING, ...)"""

    TIMEZONE: str = "Asia/Kolkata"
    """Timezone used for naive reminder timestamps"""

    DEFAULT_REMINDER_OFFSET_MINUTES: int = 60
    """Quick notes without a due time are scheduled this far in the future"""

    # Reminder store client (used by the worker)
    STORE_API_URL: str = "http://127.0.0.1:8005"
    """Base URL of the reminder store API"""

    STORE_USER_ID: str = "local"
    """Value sent as X-User-Id to the reminder store"""

    # Background Worker Configuration
    WORKER_ENABLED: bool = True
    """Enable/disable the notification worker"""

    WORKER_REFRESH_INTERVAL: int = 60
    """Interval in seconds between reminder list refreshes"""

    # Notification Configuration
    NOTIFICATION_PERMISSION: str = "default"
    """Notification permission: granted, denied, default or unsupported"""

    NOTIFICATION_WEBHOOK_URL: str = ""
    """Endpoint receiving platform notifications. Empty means unsupported"""

    NOTIFICATION_TITLE: str = "Saarthi Reminder"
    """Title attached to platform notifications"""

    class Config:
        """Pydantic config"""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
