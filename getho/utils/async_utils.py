import asyncio
from typing import Any, Coroutine

from getho.utils.logger_utils import get_logger

logger = get_logger("Async Utils")


async def gather_with_concurrency(n: int, *tasks: Coroutine[Any, Any, Any]) -> list[Any]:
    """
    Runs coroutines concurrently with at most n in flight at once.
    Results keep the order of the given tasks; the first exception propagates.
    """
    if n <= 0:
        raise ValueError(f"Concurrency limit must be greater than 0, got {n}")

    semaphore = asyncio.Semaphore(n)

    async def sem_task(task: Coroutine[Any, Any, Any]) -> Any:
        async with semaphore:
            return await task

    logger.debug(f"Gathering {len(tasks)} tasks with concurrency {n}")
    return await asyncio.gather(*(sem_task(task) for task in tasks))
