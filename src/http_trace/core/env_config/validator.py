"""
Pydantic settings for environment configuration.

Reads HTTP_TRACE_* variables (and an optional .env file) into a
validated flat model, converted to TraceClientConfig by the loader.
"""

from typing import Optional, Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HTTPTraceSettings(BaseSettings):
    """
    http-trace configuration from environment variables.

    Example .env file:
        HTTP_TRACE_BASE_URL=https://api.example.com
        HTTP_TRACE_TIMEOUT_CONNECT=5.0
        HTTP_TRACE_TIMEOUT_READ=10.0
        HTTP_TRACE_RETRY_MAX_ATTEMPTS=3
        HTTP_TRACE_RETRY_DELAY=0.5
        HTTP_TRACE_TELEMETRY=true
        HTTP_TRACE_LOG_LEVEL=DEBUG

    Usage:
        >>> settings = HTTPTraceSettings()
        >>> settings.retry_max_attempts
        0
    """

    model_config = SettingsConfigDict(
        env_prefix='HTTP_TRACE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default="", description="Base URL for all requests")

    # Timeouts
    timeout_connect: float = Field(default=5.0, gt=0)
    timeout_read: float = Field(default=30.0, gt=0)

    # Retry (send_and_retry default policy)
    retry_max_attempts: int = Field(default=0, ge=0, le=100)
    retry_delay: float = Field(default=0.0, ge=0)

    # Transport
    follow_redirects: bool = Field(default=False)
    verify_ssl: bool = Field(default=True)
    http2: bool = Field(default=False)

    # Telemetry
    telemetry: bool = Field(default=False)
    tracer_name: str = Field(default="http_trace", min_length=1)

    # Logging (disabled unless a level is given)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_stream: Optional[Literal["stdout", "stderr"]] = Field(default="stderr")
    log_propagate: bool = Field(default=False)
    log_file_path: Optional[str] = None

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Base URL must be absolute http(s) when given."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str):
            return v.upper() or None
        return v

    @field_validator('log_stream', mode='before')
    @classmethod
    def normalize_log_stream(cls, v: Optional[str]) -> Optional[str]:
        """HTTP_TRACE_LOG_STREAM=none (или пусто) отключает вывод в поток."""
        if isinstance(v, str):
            v = v.strip().lower()
            return None if v in ("", "none") else v
        return v
