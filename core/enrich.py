# core/enrich.py
from typing import Any, Dict, Optional

import httpx

from fetchers import HOSTING_FETCHERS, fetch_npm_info

from .cache import DiskCache
from .merge import merge


async def update_item(
    item: Dict[str, Any],
    cache: DiskCache,
    client: httpx.AsyncClient,
    tokens: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Enrich one catalog entry: npm first, then each hosting platform keyed on
    ``repo`` falling back to ``url``. Earlier sources win on conflicts.
    """
    tokens = tokens or {}

    if item.get("npm"):
        item = merge(item, await fetch_npm_info(item["npm"], cache, client))

    for platform, fetcher in HOSTING_FETCHERS.items():
        # repo may have been filled in by the npm lookup
        source_url = item.get("repo") or item.get("url")
        info = await fetcher(source_url, cache, client, token=tokens.get(platform))
        item = merge(item, info)

    return item
