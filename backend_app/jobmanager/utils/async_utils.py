import asyncio
from typing import Callable, TypeVar

T = TypeVar("T")


async def run_sync(fn: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking callable (Cosmos SDK, file I/O, SMTP) in the default threadpool.

    Keeps async FastAPI endpoints from blocking the event loop.
    """
    return await asyncio.to_thread(fn, *args, **kwargs)
