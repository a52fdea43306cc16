import asyncio

from config.constants import DEFAULT_DELAY_MS


async def delay(ms: int = DEFAULT_DELAY_MS) -> None:
    """Wait `ms` milliseconds."""
    await asyncio.sleep(max(ms, 0) / 1000)
