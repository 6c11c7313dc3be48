"""Configuration management for the application."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: Optional[str] = Field(default=None, alias="ANTHROPIC_API_KEY")
    google_api_key: Optional[str] = Field(default=None, alias="GOOGLE_API_KEY")

    # Database configuration
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    # Server configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    debug: bool = Field(default=False, alias="DEBUG")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def load_yaml_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load YAML configuration file."""
    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "config.yaml"
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return {}

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


class AppConfig:
    """Combined application configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.settings = Settings()
        self.yaml_config = load_yaml_config(config_path)

    def get_llm_config(self, provider: Optional[str] = None) -> Dict[str, Any]:
        """Get LLM configuration for a specific provider."""
        yaml_llm = self.yaml_config.get("llm", {})
        default_provider = yaml_llm.get("default_provider", "openai")
        provider = provider or default_provider

        llm_config = yaml_llm.get("providers", {}).get(provider, {})

        # Hardcoded fallback models per provider
        default_models = {
            "openai": "gpt-4o",
            "anthropic": "claude-sonnet-4-5-20250929",
            "google": "gemini-1.5-pro",
        }

        return {
            "provider": provider,
            "model": llm_config.get("default_model", default_models.get(provider, "gpt-4o")),
            "temperature": llm_config.get("temperature", 0.2),
            "max_tokens": llm_config.get("max_tokens", 2048),
            "available_models": llm_config.get("models", []),
        }

    def get_database_config(self) -> Dict[str, Any]:
        """Get database configuration."""
        db_config = self.yaml_config.get("database", {})
        return {
            "url": self.settings.database_url,
            "pool_size": db_config.get("pool_size", 5),
            "max_overflow": db_config.get("max_overflow", 10),
            "echo": db_config.get("echo", False),
        }

    def get_analytics_config(self) -> Dict[str, Any]:
        """Get natural-language analytics configuration."""
        analytics_config = self.yaml_config.get("analytics", {})
        return {
            "max_attempts": analytics_config.get("max_attempts", 10),
            "max_attempts_ceiling": analytics_config.get("max_attempts_ceiling", 25),
            "llm_timeout_seconds": analytics_config.get("llm_timeout_seconds", 45),
            "query_timeout_seconds": analytics_config.get("query_timeout_seconds", 15),
            "row_limit": analytics_config.get("row_limit", 500),
            "insight_sample_rows": analytics_config.get("insight_sample_rows", 3),
        }

    def get_cellartracker_config(self) -> Dict[str, Any]:
        """Get CellarTracker client configuration."""
        ct_config = self.yaml_config.get("cellartracker", {})
        return {
            "base_url": ct_config.get("base_url", "https://www.cellartracker.com"),
            "timeout_seconds": ct_config.get("timeout_seconds", 20),
            "retry_attempts": ct_config.get("retry_attempts", 3),
            "user_agent": ct_config.get("user_agent", "Mozilla/5.0 (compatible; MyCellarAI/1.0)"),
            "cache_hours": ct_config.get("cache_hours", 24),
            "insert_batch_size": ct_config.get("insert_batch_size", 100),
            "max_notes": ct_config.get("max_notes", 5),
        }

    def get_summary_cache_config(self) -> Dict[str, Any]:
        """Get tool-result summary cache configuration."""
        return self.yaml_config.get("summary_cache", {
            "max_entries": 256,
            "ttl_seconds": 3600,
        })

    def get_chat_config(self) -> Dict[str, Any]:
        """Get chat tool-calling configuration."""
        return self.yaml_config.get("chat", {
            "max_tool_rounds": 5,
        })

    def get_audit_config(self) -> Dict[str, Any]:
        """Get generated-query audit log configuration."""
        return self.yaml_config.get("audit", {
            "enabled": True,
            "log_file": "/app/logs/query_audit.log",
        })

    def get_api_key(self, provider: str) -> Optional[str]:
        """Get API key for a specific provider."""
        key_map = {
            "openai": self.settings.openai_api_key,
            "anthropic": self.settings.anthropic_api_key,
            "google": self.settings.google_api_key,
        }
        return key_map.get(provider)


# Global config instance
config = AppConfig()


def get_config() -> AppConfig:
    """Return the global configuration instance."""
    return config
