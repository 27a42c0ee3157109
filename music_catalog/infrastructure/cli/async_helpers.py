"""Async helpers for CLI commands."""

import asyncio
from collections.abc import Awaitable, Callable

from music_catalog.infrastructure.persistence.database.db_connection import (
    dispose_engine,
)


def run_async[R](operation: Callable[[], Awaitable[R]]) -> R:
    """Run an async operation to completion from a synchronous command.

    The global engine is disposed afterwards so pooled connections never
    outlive the event loop that opened them.
    """

    async def runner() -> R:
        try:
            return await operation()
        finally:
            await dispose_engine()

    return asyncio.run(runner())
