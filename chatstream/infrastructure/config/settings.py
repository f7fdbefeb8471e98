"""
Configuration settings - Infrastructure component for managing application configuration.
Uses pydantic-settings for validation and environment variable loading.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_PREFIX = 'CHATSTREAM_'


class EndpointSettings(BaseSettings):
    """Chat completions endpoint and HTTP timeouts."""

    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX, env_file='.env', extra='ignore')

    url: str = 'https://api.openai.com/v1/chat/completions'
    api_key: Optional[str] = None
    model: str = 'gpt-4o-mini'

    connect_timeout_s: float = 5.0
    read_timeout_s: float = 600.0
    request_timeout_s: float = 60.0

    @field_validator('connect_timeout_s', 'read_timeout_s', 'request_timeout_s')
    @classmethod
    def validate_timeouts(cls, v, info):
        """Non-positive timeouts fall back to the defaults."""
        if v <= 0:
            return cls.model_fields[info.field_name].default
        return v


class PacingSettings(BaseSettings):
    """Reveal animation cadence."""

    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX, env_file='.env', extra='ignore')

    tick_interval_s: float = 1 / 60
    reveal_divisor: int = 60

    @field_validator('tick_interval_s')
    @classmethod
    def validate_tick_interval(cls, v):
        return 1 / 60 if v < 0 else v

    @field_validator('reveal_divisor')
    @classmethod
    def validate_reveal_divisor(cls, v):
        """Divisor must be positive."""
        return 60 if v <= 0 else v


class ToolSettings(BaseSettings):
    """Tool round configuration."""

    model_config = SettingsConfigDict(
        env_file='.env', extra='ignore', populate_by_name=True
    )

    enabled: bool = Field(True, validation_alias='CHATSTREAM_TOOLS_ENABLED')
    restart_delay_s: float = Field(0.06, validation_alias='CHATSTREAM_TOOL_RESTART_DELAY_S')
    max_rounds: Optional[int] = Field(None, validation_alias='CHATSTREAM_TOOL_MAX_ROUNDS')

    @field_validator('restart_delay_s')
    @classmethod
    def validate_restart_delay(cls, v):
        return 0.06 if v < 0 else v

    @field_validator('max_rounds', mode='before')
    @classmethod
    def parse_max_rounds(cls, v):
        """Empty or non-positive values mean unlimited."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        try:
            v = int(v)
        except (TypeError, ValueError):
            return None
        return v if v > 0 else None


class ErrorSettings(BaseSettings):
    """Backend overload detection."""

    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX, env_file='.env', extra='ignore')

    overload_marker: str = 'insufficient'
    overload_sentinel: str = 'ERROR: ServerUnreachable'


class StreamSettings(BaseSettings):
    """Event stream framing."""

    model_config = SettingsConfigDict(env_prefix=_ENV_PREFIX, env_file='.env', extra='ignore')

    done_sentinel: str = '[DONE]'


class ThinkingSettings(BaseSettings):
    """Inline reasoning tags and quoting."""

    model_config = SettingsConfigDict(
        env_prefix=_ENV_PREFIX, env_file='.env', extra='ignore', populate_by_name=True
    )

    open_tag: str = Field('<think>', validation_alias='CHATSTREAM_THINK_OPEN_TAG')
    close_tag: str = Field('</think>', validation_alias='CHATSTREAM_THINK_CLOSE_TAG')
    quote_marker: str = '> '

    @field_validator('open_tag', 'close_tag')
    @classmethod
    def validate_tags(cls, v, info):
        """Tags must be non-empty."""
        if not v:
            return cls.model_fields[info.field_name].default
        return v


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(env_file='.env', extra='ignore', case_sensitive=False)

    # Sub-configurations
    endpoint: EndpointSettings = Field(default_factory=EndpointSettings)
    pacing: PacingSettings = Field(default_factory=PacingSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    errors: ErrorSettings = Field(default_factory=ErrorSettings)
    stream: StreamSettings = Field(default_factory=StreamSettings)
    thinking: ThinkingSettings = Field(default_factory=ThinkingSettings)

    # Logging
    log_level: str = 'INFO'

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            return 'INFO'
        return v.upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary for serialization; the API key is masked."""
        data = self.model_dump()
        if data['endpoint'].get('api_key'):
            data['endpoint']['api_key'] = '***'
        return data

    @property
    def tools_enabled(self) -> bool:
        """Check if tool system is enabled."""
        return self.tools.enabled

    def validate_required_settings(self) -> List[str]:
        """Validate required settings and return list of missing ones."""
        missing = []

        if not self.endpoint.api_key:
            missing.append('CHATSTREAM_API_KEY')

        return missing


# Global settings instance
_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Reload settings from environment (for testing)."""
    global _settings
    _settings = AppSettings()
    return _settings
