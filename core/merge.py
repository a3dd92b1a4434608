# core/merge.py
from typing import Any, Dict

# Every catalog entry is a Svelte component, so the tag adds nothing.
NOISE_TAG = "svelte"


def merge(base: Dict[str, Any], additional: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fold ``additional`` into a shallow copy of ``base``.

    - None and "" values in ``additional`` are ignored.
    - Keys missing from ``base`` are taken as-is.
    - ``tags`` lists are concatenated (base first) and every tag containing
      "svelte" is dropped.
    - Any other key already present in ``base`` keeps the base value.
    """
    merged = dict(base)

    for key, value in additional.items():
        if value is None or value == "":
            continue
        if key not in merged:
            merged[key] = value
            continue
        if key == "tags" and isinstance(value, list):
            tags = list(merged.get("tags") or []) + value
            merged["tags"] = [tag for tag in tags if NOISE_TAG not in tag]

    return merged
