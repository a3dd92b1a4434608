# core/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

ALL_FIELDS: Tuple[str, ...] = ("description", "tags", "url", "repo", "title", "stars")


@dataclass
class InfoRecord:
    """
    Normalized metadata returned by every fetcher.

    ``fields`` lists the keys the producing source owns; ``to_dict`` only
    emits those, so a GitHub record never carries ``tags`` and an npm record
    never carries ``stars``.
    """
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    url: Optional[str] = None
    repo: Optional[str] = None
    title: Optional[str] = None
    stars: Optional[int] = None
    fields: Tuple[str, ...] = field(default=ALL_FIELDS, repr=False, compare=False)

    @classmethod
    def empty(cls, fields: Tuple[str, ...] = ALL_FIELDS) -> "InfoRecord":
        return cls(tags=[] if "tags" in fields else None, fields=fields)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.fields}


@dataclass
class FetchResult:
    record: InfoRecord
    ok: bool = True
    error: Optional[str] = None

    @classmethod
    def failed(cls, fields: Tuple[str, ...], error: str) -> "FetchResult":
        return cls(record=InfoRecord.empty(fields), ok=False, error=error)


@dataclass
class BuildWarning:
    """A non-fatal problem reported back to the build host."""
    message: str
    id: str
    position: int = 0
