import os
import json
import time
import asyncio
import fnmatch
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from core.logger import get_logger
from core.cache import DiskCache
from core.console import write_done, write_progress, write_start
from core.enrich import update_item
from core.models import BuildWarning
from core.module_output import build_module
from core.scheduler import BATCH_SIZE, enrich_catalog
from fetchers.http import create_client

logger = get_logger(__name__)

CATALOG_SUFFIX = "src/pages/components/components.json"
CATALOG_PATH = os.getenv("CATALOG_PATH", CATALOG_SUFFIX)
OUTPUT_PATH = os.getenv("OUTPUT_PATH", "build/components.js")


def split_patterns(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


COMPONENTS_INCLUDE = split_patterns(os.getenv("COMPONENTS_INCLUDE", ""))
COMPONENTS_EXCLUDE = split_patterns(os.getenv("COMPONENTS_EXCLUDE", ""))


def make_filter(
    include: Optional[Iterable[str]] = None, exclude: Optional[Iterable[str]] = None
) -> Callable[[str], bool]:
    """
    Build an id filter from glob patterns. Excludes win; with no include
    patterns every id not excluded is accepted.
    """
    include = list(include or [])
    exclude = list(exclude or [])

    def accept(target_id: str) -> bool:
        path = target_id.replace("\\", "/")
        if any(fnmatch.fnmatchcase(path, p) for p in exclude):
            return False
        if include:
            return any(fnmatch.fnmatchcase(path, p) for p in include)
        return True

    return accept


class ComponentsTransform:
    """
    Enrich the component catalog on its way into the bundle.

    ``transform`` returns the ES module source for the catalog file and None
    for every other input or when the catalog cannot be parsed.
    """

    name = "components"

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        github_token: Optional[str] = None,
        gitlab_token: Optional[str] = None,
        cache: Optional[DiskCache] = None,
        batch_size: int = BATCH_SIZE,
        warn: Optional[Callable[[BuildWarning], None]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.filter = make_filter(include, exclude)
        self.tokens: Dict[str, Optional[str]] = {
            "github": github_token,
            "gitlab": gitlab_token,
        }
        self.cache = cache
        self.batch_size = batch_size
        self.warnings: List[BuildWarning] = []
        self._warn = warn
        self.transport = transport

    def warn(self, warning: BuildWarning) -> None:
        self.warnings.append(warning)
        if self._warn is not None:
            self._warn(warning)
        else:
            logger.warning(
                "%s: %s (position %d)", warning.id, warning.message, warning.position
            )

    def accepts(self, target_id: str) -> bool:
        return target_id.replace("\\", "/").endswith(CATALOG_SUFFIX) and self.filter(target_id)

    async def enrich(self, items: List[Any]) -> List[Any]:
        cache = self.cache if self.cache is not None else DiskCache()
        async with create_client(self.transport) as client:

            async def update(item):
                return await update_item(item, cache, client, self.tokens)

            return await enrich_catalog(
                items, update, batch_size=self.batch_size, on_progress=write_progress
            )

    async def transform(self, source: str, target_id: str) -> Optional[str]:
        if not self.accepts(target_id):
            return None

        try:
            parsed = json.loads(source)
        except json.JSONDecodeError as e:
            self.warn(BuildWarning("Could not parse JSON file", target_id, e.pos))
            return None

        if not isinstance(parsed, list):
            self.warn(BuildWarning("Expected a JSON array of components", target_id, 0))
            return None

        write_start()
        started = time.monotonic()
        enriched = await self.enrich(parsed)
        elapsed_ms = int((time.monotonic() - started) * 1000)
        write_done(elapsed_ms)
        logger.debug("Enriched %d components from %s in %d ms", len(enriched), target_id, elapsed_ms)

        return build_module(enriched, target_id)


def main() -> int:
    catalog = Path(CATALOG_PATH)
    try:
        source = catalog.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("Could not read component catalog at %s: %s", catalog, e)
        return 1

    plugin = ComponentsTransform(include=COMPONENTS_INCLUDE, exclude=COMPONENTS_EXCLUDE)
    output = asyncio.run(plugin.transform(source, catalog.resolve().as_posix()))
    if output is None:
        logger.warning("No module produced for %s; leaving %s untouched.", catalog, OUTPUT_PATH)
        return 0

    out_path = Path(OUTPUT_PATH)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(output, encoding="utf-8")
    logger.info("Wrote %s", out_path)
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        raise SystemExit(130)
    except Exception as e:
        logger.exception("Fatal components error: %s", e)
        raise SystemExit(2)
