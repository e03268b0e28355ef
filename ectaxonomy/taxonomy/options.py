"""
Taxonomy Manager Options

The persisted registry record lives in `data/entity_collection_taxonomy.json`:
a mapping of consumer plugin name to the stored copy of its configuration
(default terms omitted). Same load/save pattern as the plugin loader.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ectaxonomy.config import settings

logger = logging.getLogger(__name__)

_REGISTRY_RECORD_FILE = Path(settings.data_dir) / "entity_collection_taxonomy.json"


def registry_record_exists() -> bool:
    return _REGISTRY_RECORD_FILE.exists()


def load_registry_record() -> dict[str, dict[str, Any]]:
    """
    Load the registry record from disk.

    Returns an empty record if the file does not exist or cannot be parsed.
    """
    if _REGISTRY_RECORD_FILE.exists():
        try:
            record = json.loads(_REGISTRY_RECORD_FILE.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Failed to read taxonomy registry record: %s", exc)
        else:
            if isinstance(record, dict):
                return record
            logger.warning("Ignoring taxonomy registry record of type %s", type(record).__name__)
    return {}


def save_registry_record(record: dict[str, dict[str, Any]]) -> None:
    _REGISTRY_RECORD_FILE.parent.mkdir(parents=True, exist_ok=True)
    _REGISTRY_RECORD_FILE.write_text(
        json.dumps(record, indent=2, ensure_ascii=False),
        encoding="utf-8",
    )


def delete_registry_record() -> bool:
    """Remove the registry record. Returns False when there was none."""
    try:
        _REGISTRY_RECORD_FILE.unlink()
    except FileNotFoundError:
        return False
    return True
