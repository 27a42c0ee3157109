"""Configuration module for the music catalog.

Public API:
----------
settings: Settings instance
    Pydantic settings object with nested configuration groups

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(verbose: bool = False) -> None
    Configure Loguru logger for the application

log_startup_info() -> None
    Log the effective configuration at startup

Usage:
------
```python
from music_catalog.config import get_logger, settings

retries = settings.persistence.save_retry_count
logger = get_logger(__name__)
```
"""

from .logging import get_logger, log_startup_info, setup_loguru_logger
from .settings import settings

__all__ = [
    "get_logger",
    "log_startup_info",
    "settings",
    "setup_loguru_logger",
]
