# core/scheduler.py
import os
import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from .logger import get_logger

logger = get_logger(__name__)

BATCH_SIZE = int(os.getenv("BATCH_SIZE", "10"))

Item = Dict[str, Any]


def batches(items: List[Item], size: int) -> Iterator[List[Item]]:
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _describe(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("title") or item.get("npm") or item.get("repo") or item.get("url") or "<untitled>")
    return repr(item)


async def enrich_catalog(
    items: List[Item],
    update: Callable[[Item], Awaitable[Item]],
    batch_size: int = BATCH_SIZE,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> List[Item]:
    """
    Run ``update`` over ``items`` one batch at a time.

    Items inside a batch run concurrently and all of them settle before the
    next batch starts. An item whose update raises is kept unchanged. Returns
    a new list in the original order; ``on_progress(done, total)`` fires
    after every batch.
    """
    total = len(items)
    enriched: List[Item] = []

    for batch in batches(items, batch_size):
        results = await asyncio.gather(
            *(update(item) for item in batch), return_exceptions=True
        )
        for item, result in zip(batch, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Enrichment failed for component #%d (%s): %s",
                    len(enriched), _describe(item), result,
                    exc_info=result,
                )
                enriched.append(item)
            else:
                enriched.append(result)

        if on_progress is not None:
            on_progress(len(enriched), total)

    return enriched
