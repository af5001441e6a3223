# bmsync JSON I/O
# Single canonical JSON text form shared by every JSON writer

import json
from pathlib import Path
from typing import Any

JSON_INDENT = 2

# Part of the hashed bytes. Changing it makes every tracked JSON file look changed once.
JSON_TRAILING_NEWLINE = "\n"


def dump_json(data: Any, *, spaces: int = JSON_INDENT) -> str:
    """
    Serialize data to the canonical on-disk JSON text.

    Args:
        data: JSON-serializable value.
        spaces: Indentation width.

    Returns:
        Pretty-printed JSON followed by JSON_TRAILING_NEWLINE.
    """
    return json.dumps(data, indent=spaces, ensure_ascii=False) + JSON_TRAILING_NEWLINE


def load_json(path: Path) -> Any:
    """Read and parse a UTF-8 JSON file."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)
