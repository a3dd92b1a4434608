# fetchers/npm.py
import os
import re
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from tenacity import RetryError

from core.cache import DiskCache, get_data
from core.logger import get_logger
from core.models import FetchResult, InfoRecord

from .http import FetchError, fetch_json

logger = get_logger(__name__)

NPM_REGISTRY_URL = os.getenv("NPM_REGISTRY_URL", "https://registry.npmjs.org").rstrip("/")
FIELDS = ("description", "tags", "url", "repo", "title")


def package_url(package_name: str) -> str:
    # scoped packages keep the "@" but the slash must be encoded
    return f"{NPM_REGISTRY_URL}/{quote(package_name, safe='@')}"


def clean_repo_url(repository: Any) -> Optional[str]:
    """
    Turn a package.json ``repository`` field into a plain URL:
    ``git+https://github.com/a/b.git`` -> ``https://github.com/a/b``.
    """
    if isinstance(repository, dict):
        repository = repository.get("url")
    if not isinstance(repository, str):
        return None
    repo = re.sub(r"^git\+", "", repository.strip())
    repo = re.sub(r"\.git$", "", repo)
    return repo or None


def latest_manifest(packument: Dict[str, Any]) -> Dict[str, Any]:
    latest = (packument.get("dist-tags") or {}).get("latest")
    versions = packument.get("versions") or {}
    manifest = versions.get(latest) if latest else None
    return manifest if isinstance(manifest, dict) else packument


def parse_package(manifest: Dict[str, Any]) -> InfoRecord:
    keywords = manifest.get("keywords")
    return InfoRecord(
        description=manifest.get("description"),
        tags=keywords if isinstance(keywords, list) else None,
        url=manifest.get("homepage"),
        repo=clean_repo_url(manifest.get("repository")),
        title=manifest.get("name"),
        fields=FIELDS,
    )


async def _lookup(package_name: str, client: httpx.AsyncClient) -> FetchResult:
    url = package_url(package_name)
    try:
        packument = await fetch_json(client, url)
    except RetryError as e:
        logger.warning("npm lookup for %s failed after retries: %s", package_name, e)
        return FetchResult.failed(FIELDS, str(e))
    except (FetchError, httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("npm lookup for %s failed: %s", package_name, e)
        return FetchResult.failed(FIELDS, str(e))

    if not isinstance(packument, dict):
        logger.warning("npm returned an unexpected payload for %s", package_name)
        return FetchResult.failed(FIELDS, "unexpected payload")

    return FetchResult(parse_package(latest_manifest(packument)))


async def fetch_npm_info(
    package_name: str, cache: DiskCache, client: httpx.AsyncClient
) -> Dict[str, Any]:
    """
    Return description/tags/url/repo/title for an npm package. Never raises
    for remote problems; the empty record comes back instead.
    """
    return await get_data(
        cache, f"npm-{package_name}", lambda: _lookup(package_name, client)
    )
