"""Loading the saved library for display: enrichment and category grouping."""
import asyncio
import logging
from dataclasses import replace
from typing import Dict, List

from booklib.async_client import AsyncOpenLibraryClient
from booklib.models import (
    SavedBook,
    RemoteBookSummary,
    UNTITLED,
    UNKNOWN_AUTHOR,
    UNCATEGORIZED,
    PLACEHOLDER_COVER_URL,
)

logger = logging.getLogger(__name__)


def merge_summary(book: SavedBook, summary: RemoteBookSummary) -> SavedBook:
    """Overlay fetched title, author and cover on a stored book.
    
    Fetched values win unless blank or a display default. Category and
    ``saved_at`` always come from the store.
    """
    def fresh(value, default):
        return bool(value) and value != default
    
    return replace(
        book,
        title=summary.title if fresh(summary.title, UNTITLED) else book.title,
        author=summary.author if fresh(summary.author, UNKNOWN_AUTHOR) else book.author,
        cover_url=summary.cover_url if fresh(summary.cover_url, PLACEHOLDER_COVER_URL) else book.cover_url
    )


async def _enrich_one(client: AsyncOpenLibraryClient, book: SavedBook) -> SavedBook:
    try:
        summary = await client.fetch_summary(book.id)
    except Exception as e:
        logger.warning(f"Enrichment of {book.id} failed, keeping stored values: {e}")
        return book
    
    if summary is None:
        return book
    return merge_summary(book, summary)


async def enrich_books(client: AsyncOpenLibraryClient, books: List[SavedBook]) -> List[SavedBook]:
    """
    Refresh display fields of saved books from Open Library.
    
    One fetch per book, all in flight together. Each fetch handles its own
    failure, so a book whose lookup fails keeps its stored values and the
    others are unaffected.
    
    Args:
        client: Remote client
        books: Books as returned by ``Database.list_books()``
        
    Returns:
        Enriched books, same length and order as the input
    """
    tasks = [_enrich_one(client, book) for book in books]
    enriched = await asyncio.gather(*tasks)
    logger.info(f"Enriched {len(enriched)} saved books")
    return list(enriched)


def group_by_category(books: List[SavedBook]) -> Dict[str, List[SavedBook]]:
    """Group books by category, keeping the order categories first appear in."""
    grouped: Dict[str, List[SavedBook]] = {}
    for book in books:
        grouped.setdefault(book.category or UNCATEGORIZED, []).append(book)
    return grouped
