# fetchers/http.py
import os
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from core.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = os.getenv("COMPONENTS_USER_AGENT", "components-enricher/1.0")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
HTTP_RETRY_ATTEMPTS = int(os.getenv("HTTP_RETRY_ATTEMPTS", "3"))
HTTP_RETRY_MAX_WAIT = float(os.getenv("HTTP_RETRY_MAX_WAIT", "10"))


class FetchError(Exception):
    """Remote API answered with something we will not retry."""


class TransientHTTPError(FetchError):
    """Rate limit or server-side error worth another attempt."""


def create_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


async def _get_json(
    client: httpx.AsyncClient, url: str, headers: Optional[Dict[str, str]]
) -> Any:
    resp = await client.get(url, headers=headers)
    status = resp.status_code
    if status == 429 or status >= 500:
        raise TransientHTTPError(f"{status} from {url}")
    if status >= 400:
        raise FetchError(f"{status} from {url}")
    try:
        return resp.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON from {url}: {e}") from e


async def fetch_json(
    client: httpx.AsyncClient, url: str, headers: Optional[Dict[str, str]] = None
) -> Any:
    """
    GET ``url`` and decode the JSON body. Transport errors, 429 and 5xx are
    retried; once attempts run out tenacity raises ``RetryError``.
    """
    retrying = AsyncRetrying(
        wait=wait_exponential_jitter(initial=1, max=HTTP_RETRY_MAX_WAIT),
        stop=stop_after_attempt(max(1, HTTP_RETRY_ATTEMPTS)),
        retry=retry_if_exception_type((httpx.TransportError, TransientHTTPError)),
    )
    async for attempt in retrying:
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.debug("Retrying %s (attempt %d)", url, attempt.retry_state.attempt_number)
            return await _get_json(client, url, headers)
