"""Curated metadata for records Open Library answers incompletely.

The table lives in a JSON file so it can be extended without code changes.
Each key is a work identifier and each value may carry ``publishers``,
``publish_date`` and ``number_of_pages``; missing keys stay absent.
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from booklib.models import Correction
from booklib.parse import string_list

logger = logging.getLogger(__name__)

DEFAULT_CORRECTIONS_FILE = Path(__file__).resolve().parent / "data" / "corrections.json"


def parse_correction(entry: dict) -> Correction:
    """Convert one raw table entry into a Correction."""
    publish_date = entry.get("publish_date")
    pages = entry.get("number_of_pages")
    return Correction(
        publishers=string_list(entry.get("publishers")),
        publish_date=str(publish_date) if publish_date not in (None, "") else None,
        number_of_pages=pages if isinstance(pages, int) and pages > 0 else None
    )


def load_corrections(path: Optional[Union[str, Path]] = None) -> Dict[str, Correction]:
    """
    Load the correction table.
    
    Args:
        path: JSON file to read; the bundled table when None
        
    Returns:
        Mapping of identifier to Correction (empty if the file is unusable)
    """
    source = Path(path) if path else DEFAULT_CORRECTIONS_FILE
    
    try:
        with source.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load corrections from {source}: {e}")
        return {}
    
    if not isinstance(raw, dict):
        logger.warning(f"Corrections file {source} is not a JSON object")
        return {}
    
    table = {
        book_id: parse_correction(entry)
        for book_id, entry in raw.items()
        if isinstance(entry, dict)
    }
    logger.info(f"Loaded {len(table)} corrections from {source}")
    return table
