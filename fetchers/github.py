# fetchers/github.py
import os
import re
from typing import Any, Dict, Optional, Tuple

import httpx
from tenacity import RetryError

from core.cache import DiskCache, get_data
from core.logger import get_logger
from core.models import FetchResult, InfoRecord

from .http import FetchError, fetch_json

logger = get_logger(__name__)

GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "").strip()
FIELDS = ("stars", "description", "title", "url")

PREFIXES = (
    "https://github.com/",
    "ssh://git@github.com/",
    "git://github.com/",
)
REPO_RE = re.compile(r"^(?:https|ssh|git)://(?:git@)?github\.com/([^/#?\s]+)/([^/#?\s]+)")


def parse_repo_url(url: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return (owner, repo) for a GitHub URL, None for anything else."""
    if not url or not url.startswith(PREFIXES):
        return None
    m = REPO_RE.match(url)
    if not m:
        return None
    owner, repo = m.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


def _headers(token: str) -> Dict[str, str]:
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def _lookup(
    owner: str, repo: str, client: httpx.AsyncClient, token: str
) -> FetchResult:
    url = f"{GITHUB_API_URL}/repos/{owner}/{repo}"
    try:
        data = await fetch_json(client, url, headers=_headers(token))
    except RetryError as e:
        logger.warning("GitHub lookup for %s/%s failed after retries: %s", owner, repo, e)
        return FetchResult.failed(FIELDS, str(e))
    except (FetchError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("GitHub lookup for %s/%s failed: %s", owner, repo, e)
        return FetchResult.failed(FIELDS, str(e))

    if not isinstance(data, dict):
        return FetchResult.failed(FIELDS, "unexpected payload")

    return FetchResult(
        InfoRecord(
            stars=data.get("stargazers_count"),
            description=data.get("description"),
            title=data.get("name"),
            url=data.get("homepage"),
            fields=FIELDS,
        )
    )


async def fetch_github_info(
    url: Optional[str],
    cache: DiskCache,
    client: httpx.AsyncClient,
    token: Optional[str] = None,
) -> Dict[str, Any]:
    parsed = parse_repo_url(url)
    if parsed is None:
        return InfoRecord.empty(FIELDS).to_dict()

    owner, repo = parsed
    return await get_data(
        cache,
        f"github-{owner}-{repo}",
        lambda: _lookup(owner, repo, client, GITHUB_TOKEN if token is None else token),
    )
