"""
config_source.py

Finds the Gantt view configuration in a `.base` file, a YAML file, or a
```base / ```yaml fenced block embedded in a Markdown note. Read-only.
"""

import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from gantt_core.config import config as settings

_FENCE = re.compile(r"^```(?:base|yaml|yml)[ \t]*\r?\n(.*?)^```[ \t]*$", re.DOTALL | re.MULTILINE)
_VIEW_TYPES = ("obsidianGantt", "obsidian-gantt")


def extract_view_config(data: Any, key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Pull the Gantt config out of parsed YAML. Looks at, in order: a top-level
    `key` block, a Gantt-typed entry under `views`, then a bare config with
    `fieldMappings` at the top level.
    """
    key = key or settings['config_key']
    if not isinstance(data, dict):
        return None

    if isinstance(data.get(key), dict):
        return data[key]

    views = data.get("views")
    if isinstance(views, list):
        for view in views:
            if not isinstance(view, dict):
                continue
            if view.get("type") in _VIEW_TYPES or view.get("viewType") in _VIEW_TYPES:
                if isinstance(view.get(key), dict):
                    return view[key]
                if "fieldMappings" in view:
                    return view

    if "fieldMappings" in data:
        return data
    return None


def read_config_block(text: str, key: Optional[str] = None) -> Dict[str, Any]:
    """Config from the first fenced block in `text` that carries one."""
    for m in _FENCE.finditer(text):
        try:
            data = yaml.safe_load(m.group(1))
        except yaml.YAMLError:
            continue
        found = extract_view_config(data, key)
        if found is not None:
            return found
    raise ValueError("No Gantt configuration block found")


def read_config_file(path: str, key: Optional[str] = None) -> Dict[str, Any]:
    source = Path(path)
    text = source.read_text(encoding="utf-8")

    if source.suffix.lower() in (".base", ".yaml", ".yml"):
        found = extract_view_config(yaml.safe_load(text), key)
        if found is None:
            raise ValueError(f"No Gantt configuration found in {path}")
        return found
    return read_config_block(text, key)
