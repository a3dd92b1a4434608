# fetchers/gitlab.py
import os
import re
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx
from tenacity import RetryError

from core.cache import DiskCache, get_data
from core.logger import get_logger
from core.models import FetchResult, InfoRecord

from .http import FetchError, fetch_json

logger = get_logger(__name__)

GITLAB_API_URL = os.getenv("GITLAB_API_URL", "https://gitlab.com/api/v4").rstrip("/")
GITLAB_TOKEN = os.getenv("GITLAB_TOKEN", "").strip()
FIELDS = ("stars", "description", "title", "url", "tags")

PREFIX = "https://gitlab.com/"
REPO_RE = re.compile(r"^https://gitlab\.com/([^/#?\s]+)/([^/#?\s]+)")


def parse_repo_url(url: Optional[str]) -> Optional[Tuple[str, str]]:
    if not url or not url.startswith(PREFIX):
        return None
    m = REPO_RE.match(url)
    if not m:
        return None
    owner, repo = m.groups()
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    return owner, repo


async def _lookup(
    owner: str, repo: str, client: httpx.AsyncClient, token: str
) -> FetchResult:
    project = quote(f"{owner}/{repo}", safe="")
    url = f"{GITLAB_API_URL}/projects/{project}"
    headers = {"PRIVATE-TOKEN": token} if token else None
    try:
        data = await fetch_json(client, url, headers=headers)
    except RetryError as e:
        logger.warning("GitLab lookup for %s/%s failed after retries: %s", owner, repo, e)
        return FetchResult.failed(FIELDS, str(e))
    except (FetchError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("GitLab lookup for %s/%s failed: %s", owner, repo, e)
        return FetchResult.failed(FIELDS, str(e))

    if not isinstance(data, dict):
        return FetchResult.failed(FIELDS, "unexpected payload")

    # tag_list was renamed to topics in GitLab 14
    tags = data.get("topics")
    if tags is None:
        tags = data.get("tag_list")

    return FetchResult(
        InfoRecord(
            stars=data.get("star_count"),
            description=data.get("description"),
            title=data.get("name"),
            url=data.get("web_url"),
            tags=tags if isinstance(tags, list) else [],
            fields=FIELDS,
        )
    )


async def fetch_gitlab_info(
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
        f"gitlab-{owner}-{repo}",
        lambda: _lookup(owner, repo, client, GITLAB_TOKEN if token is None else token),
    )
