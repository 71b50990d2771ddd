"""
Core utilities and configuration for the import pipeline.

Modules:
    config: Application configuration and environment variable management
    database: Database engine and session factories for the SQL store
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.exceptions import FetchError, ConfigurationError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_engine",
    "create_session_maker",
    "init_models",
    # Exceptions
    "PipelineError",
    "FetchError",
    "NetworkError",
    "RateLimitError",
    "AuthenticationError",
    "ResourceNotFoundError",
    "SourceFileError",
    "TransformError",
    "StoreError",
    "ConfigurationError",
    "RetryableError",
    "NonRetryableError",
]
