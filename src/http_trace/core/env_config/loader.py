"""
Configuration loader from environment variables and .env files.
"""

from typing import Optional

from ..config import RetryPolicy, TimeoutConfig, TraceClientConfig
from ..logging.config import LoggingConfig
from .validator import HTTPTraceSettings


def load_from_env(env_file: Optional[str] = None, **overrides) -> TraceClientConfig:
    """
    Load TraceClientConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters (settings field names)
    2. Environment variables (HTTP_TRACE_*)
    3. .env file
    4. Defaults

    Args:
        env_file: Custom .env file path
        **overrides: Explicit config overrides

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(env_file=".env.production", retry_max_attempts=5)
    """
    # Init kwargs have the highest priority in pydantic-settings
    if env_file is not None:
        settings = HTTPTraceSettings(_env_file=env_file, **overrides)
    else:
        settings = HTTPTraceSettings(**overrides)

    logging_config = None
    if settings.log_level:
        logging_config = LoggingConfig.create(
            level=settings.log_level,
            format=settings.log_format,
            stream=settings.log_stream,
            propagate=settings.log_propagate,
            file_path=settings.log_file_path,
        )

    return TraceClientConfig(
        base_url=settings.base_url or None,
        timeout=TimeoutConfig(connect=settings.timeout_connect, read=settings.timeout_read),
        retry=RetryPolicy(max_attempts=settings.retry_max_attempts, delay=settings.retry_delay),
        follow_redirects=settings.follow_redirects,
        verify_ssl=settings.verify_ssl,
        http2=settings.http2,
        telemetry=settings.telemetry,
        tracer_name=settings.tracer_name,
        logging=logging_config,
    )
