"""Parse and normalize Open Library API responses."""
import logging
import math
from typing import Dict, Any, Iterator, List, Optional

from booklib.config import Config
from booklib.models import RemoteBookSummary, PLACEHOLDER_COVER_URL

logger = logging.getLogger(__name__)

COVER_SIZES = ("S", "M", "L")


def resolve_cover_url(cover_id: Any, size: str = "M") -> str:
    """
    Build a cover image URL from a numeric Open Library cover id.
    
    Args:
        cover_id: Cover id as found in ``cover_i`` or ``covers``
        size: One of "S", "M" or "L"
        
    Returns:
        Cover URL, or the placeholder URL when the id is missing or not a number
    """
    if size not in COVER_SIZES:
        raise ValueError(f"Unknown cover size: {size!r}")
    
    if cover_id is None or isinstance(cover_id, bool):
        return PLACEHOLDER_COVER_URL
    
    # Whole numbers go through int() so large ids keep every digit
    if isinstance(cover_id, int):
        number = cover_id
    elif isinstance(cover_id, str) and cover_id.strip().isdecimal():
        number = int(cover_id.strip())
    else:
        try:
            value = float(cover_id)
        except (TypeError, ValueError):
            return PLACEHOLDER_COVER_URL
        if math.isnan(value) or math.isinf(value) or value != int(value):
            return PLACEHOLDER_COVER_URL
        number = int(value)
    
    if number <= 0:
        return PLACEHOLDER_COVER_URL
    
    return f"{Config.COVERS_BASE_URL}/{number}-{size}.jpg"


def cover_id_of(record: Dict[str, Any]) -> Optional[int]:
    """Pick the cover id from a search doc (``cover_i``) or a work/edition (``covers``)."""
    cover_i = record.get("cover_i")
    if isinstance(cover_i, int) and not isinstance(cover_i, bool) and cover_i > 0:
        return cover_i
    
    covers = record.get("covers")
    for cover in covers if isinstance(covers, list) else []:
        # Open Library uses -1 for removed covers
        if isinstance(cover, int) and not isinstance(cover, bool) and cover > 0:
            return cover
    return None


def parse_search_doc(doc: Dict[str, Any]) -> Optional[RemoteBookSummary]:
    """
    Parse a single document from a ``search.json`` response.
    
    Args:
        doc: Single entry of the ``docs`` list
        
    Returns:
        RemoteBookSummary or None if the doc has no usable key
    """
    if not isinstance(doc, dict):
        return None
    
    key = doc.get("key")
    if not key or not isinstance(key, str):
        return None
    
    authors = doc.get("author_name") or []
    author = authors[0] if isinstance(authors, list) and authors else ""
    
    cover_id = cover_id_of(doc)
    
    return RemoteBookSummary(
        id=key,
        title=doc.get("title") or "",
        author=author if isinstance(author, str) else "",
        cover_url=resolve_cover_url(cover_id) if cover_id else None
    )


def iter_search_results(response_json: Optional[Dict[str, Any]]) -> Iterator[RemoteBookSummary]:
    """
    Lazily map a ``search.json`` response onto summaries, in response order.
    
    Args:
        response_json: Complete API response JSON (None is treated as empty)
        
    Yields:
        RemoteBookSummary for every doc with a key
    """
    if not isinstance(response_json, dict):
        return
    
    docs = response_json.get("docs") or []
    if not isinstance(docs, list):
        logger.warning("Search response has malformed docs list")
        return
    
    for doc in docs:
        summary = parse_search_doc(doc)
        if summary:
            yield summary


def author_keys(record: Dict[str, Any]) -> List[str]:
    """Return the author keys (``/authors/OL...A``) referenced by a work record."""
    keys = []
    entries = record.get("authors")
    for entry in entries if isinstance(entries, list) else []:
        if not isinstance(entry, dict):
            continue
        # Works nest the reference under "author"; editions list it directly
        ref = entry.get("author", entry)
        key = ref.get("key") if isinstance(ref, dict) else None
        if isinstance(key, str) and key:
            keys.append(key)
    return keys


def parse_description(value: Any) -> str:
    """Descriptions come either as a plain string or as ``{"type": ..., "value": ...}``."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, dict) and isinstance(value.get("value"), str):
        return value["value"].strip()
    return ""


def string_list(value: Any) -> List[str]:
    """Keep only the string entries of a list field."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str) and item]


def first_edition_key(editions_json: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the key of the first entry of an ``editions.json`` response."""
    if not isinstance(editions_json, dict):
        return None
    entries = editions_json.get("entries") or []
    if not isinstance(entries, list) or not entries:
        return None
    first = entries[0]
    key = first.get("key") if isinstance(first, dict) else None
    return key if isinstance(key, str) and key else None


def parse_page_count(edition: Optional[Dict[str, Any]]) -> Optional[int]:
    """Page count of an edition record, if it carries a positive one."""
    if not isinstance(edition, dict):
        return None
    pages = edition.get("number_of_pages")
    if isinstance(pages, int) and not isinstance(pages, bool) and pages > 0:
        return pages
    return None


def parse_publish_date(record: Optional[Dict[str, Any]]) -> Optional[str]:
    """Work records use ``first_publish_date``, editions use ``publish_date``."""
    if not isinstance(record, dict):
        return None
    for field_name in ("first_publish_date", "publish_date"):
        value = record.get(field_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
