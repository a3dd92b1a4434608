# core/module_output.py
import os
import json
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(loader=FileSystemLoader(str(TEMPLATE_DIR)), keep_trailing_newline=True)

JSON_INDENT = os.getenv("JSON_INDENT", "\t")
COMPACT_OUTPUT = os.getenv("COMPACT_OUTPUT", "false").lower() == "true"


def to_json(items: List[Dict[str, Any]]) -> str:
    # ensure_ascii keeps U+2028/U+2029 escaped, which JS string literals reject
    if COMPACT_OUTPUT:
        return json.dumps(items, separators=(",", ":"))
    return json.dumps(items, indent=JSON_INDENT)


def build_module(items: List[Dict[str, Any]], source_id: str) -> str:
    """Render the enriched catalog as an ES module with a default export."""
    template = env.get_template("module.js.j2")
    return template.render(
        source_id=source_id,
        count=len(items),
        payload=to_json(items),
    )
