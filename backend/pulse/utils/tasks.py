import asyncio
import logging
from typing import Any, Awaitable, List

from pymongo.errors import PyMongoError


logger = logging.getLogger(__name__)


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """Await all awaitables jointly; the first failure cancels the rest and propagates."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


async def best_effort(aw: Awaitable[Any], description: str) -> bool:
    """Await a side effect whose failure must not fail the caller (counter upkeep)."""
    try:
        await aw
    except PyMongoError:
        logger.exception("%s failed", description)
        return False
    return True
