"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Discovery Simulator"
    app_version: str = "1.2.0"
    debug: bool = True

    # Storage
    storage_type: str = "local"
    local_storage_path: str = "./data"

    # LLM Provider settings
    llm_provider: str = "openrouter"
    llm_api_key: Optional[str] = None
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_primary_model: str = "anthropic/claude-3-haiku"
    llm_fallback_model: Optional[str] = "anthropic/claude-3.5-sonnet"
    llm_max_tokens: int = 1000
    llm_timeout_seconds: float = 30.0
    llm_thinking_delay_ms: int = 800  # artificial pause before the persona replies

    # Legacy key name from the original deployment (still accepted)
    openrouter_api_key: Optional[str] = None

    # Chat submission limits
    chat_max_message_length: int = 500  # user-authored content only
    chat_max_messages: int = 50

    # Session lifecycle
    default_max_turns: int = 15
    session_expiry_minutes: int = 30
    cleanup_interval_seconds: float = 300.0  # sweep of stale sessions and rate limit entries

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_backend: str = "memory"  # "memory" or "storage"
    rate_limit_max_requests: int = 20
    rate_limit_window_seconds: float = 60.0

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/discovery.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all LLM calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def resolved_llm_api_key(self) -> Optional[str]:
        return self.llm_api_key or self.openrouter_api_key


settings = Settings()
