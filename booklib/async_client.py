"""Async Open Library client used to search and enrich books."""
import asyncio
import httpx
from typing import Dict, Any, Iterator, Optional
import logging

from booklib.config import Config
from booklib.corrections import load_corrections
from booklib.errors import RemoteFault
from booklib.models import (
    Correction,
    RemoteBookDetails,
    RemoteBookSummary,
    UNTITLED,
    UNKNOWN_AUTHOR,
)
from booklib.parse import (
    author_keys,
    cover_id_of,
    first_edition_key,
    iter_search_results,
    parse_description,
    parse_page_count,
    parse_publish_date,
    resolve_cover_url,
    string_list,
)

logger = logging.getLogger(__name__)


def record_path(book_id: str) -> str:
    """Open Library keys are paths such as ``/works/OL1184991W``."""
    book_id = book_id.strip()
    return book_id if book_id.startswith("/") else f"/{book_id}"


class AsyncOpenLibraryClient:
    """Async facade over Open Library.
    
    Public methods never raise for remote problems: a failed lookup comes
    back as ``None``, an empty result, or a partially filled object.
    """
    
    def __init__(
        self,
        base_url: str = Config.OPENLIBRARY_BASE_URL,
        timeout: int = 10,
        max_concurrent: int = 5,
        corrections: Optional[Dict[str, Correction]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.
        
        Args:
            base_url: Open Library root URL
            timeout: Request timeout
            max_concurrent: Maximum concurrent requests
            corrections: Correction table; loaded from Config.CORRECTIONS_FILE when None
            transport: Optional httpx transport (used to fake Open Library in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)
        
        if corrections is None:
            corrections = load_corrections(Config.CORRECTIONS_FILE)
        self.corrections = corrections
        
        self.client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"}
        )
    
    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET a JSON object from Open Library.
        
        Raises:
            RemoteFault: on transport errors, non-200 responses or non-object bodies
        """
        url = f"{self.base_url}{path}"
        
        # Use semaphore to limit concurrency
        async with self.semaphore:
            logger.info(f"Async request: {url}")
            try:
                response = await self.client.get(url, params=params)
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise RemoteFault(f"Request to {url} failed: {e}") from e
        
        if response.status_code != 200:
            raise RemoteFault(f"Status {response.status_code} for {url}")
        
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteFault(f"Malformed JSON from {url}") from e
        
        if not isinstance(data, dict):
            raise RemoteFault(f"Unexpected payload from {url}")
        return data
    
    async def search(self, query: str, limit: Optional[int] = None) -> Iterator[RemoteBookSummary]:
        """
        Search for books by free text.
        
        Args:
            query: Search query
            limit: Max results (Open Library default when None)
            
        Returns:
            Lazy iterator over summaries in the order Open Library returned them
        """
        params: Dict[str, Any] = {"q": query}
        if limit:
            params["limit"] = limit
        
        try:
            data = await self._get_json("/search.json", params)
        except RemoteFault as e:
            logger.warning(f"Search for {query!r} failed: {e}")
            return iter(())
        
        return iter_search_results(data)
    
    @staticmethod
    def resolve_cover_url(cover_id: Any, size: str = "M") -> str:
        """Cover image URL for a numeric cover id; no network call."""
        return resolve_cover_url(cover_id, size)
    
    async def _author_name(self, author_key: str) -> Optional[str]:
        """Resolve ``/authors/OL...A`` to a display name, or None."""
        try:
            data = await self._get_json(f"{record_path(author_key)}.json")
        except RemoteFault as e:
            logger.warning(f"Author lookup {author_key} failed: {e}")
            return None
        
        name = data.get("name") or data.get("personal_name")
        return name if isinstance(name, str) and name else None
    
    async def fetch_summary(self, book_id: str) -> Optional[RemoteBookSummary]:
        """
        Fetch a single record and project it onto a summary.
        
        One extra request resolves the primary author when the record
        references one.
        
        Returns:
            RemoteBookSummary, or None if the record itself could not be fetched
        """
        try:
            record = await self._get_json(f"{record_path(book_id)}.json")
        except RemoteFault as e:
            logger.warning(f"Fetching {book_id} failed: {e}")
            return None
        
        author = UNKNOWN_AUTHOR
        keys = author_keys(record)
        if keys:
            author = await self._author_name(keys[0]) or UNKNOWN_AUTHOR
        
        title = record.get("title")
        cover_id = cover_id_of(record)
        
        return RemoteBookSummary(
            id=book_id,
            title=title if isinstance(title, str) and title else UNTITLED,
            author=author,
            cover_url=resolve_cover_url(cover_id) if cover_id else None
        )
    
    async def _first_edition(self, work_path: str) -> Optional[Dict[str, Any]]:
        """Fetch the first edition of a work; works themselves carry no page count."""
        try:
            editions = await self._get_json(f"{work_path}/editions.json")
            edition_key = first_edition_key(editions)
            if not edition_key:
                return None
            return await self._get_json(f"{record_path(edition_key)}.json")
        except RemoteFault as e:
            logger.warning(f"Edition lookup for {work_path} failed: {e}")
            return None
    
    async def fetch_details(self, book_id: str) -> Optional[RemoteBookDetails]:
        """
        Fetch everything the detail page shows for a work.
        
        Requests run work -> editions -> first edition, then all author
        names concurrently. Publishers, publish date and page count missing
        upstream are filled from the correction table when it has an entry.
        
        Returns:
            RemoteBookDetails, or None if the work record could not be fetched
        """
        work_path = record_path(book_id)
        try:
            work = await self._get_json(f"{work_path}.json")
        except RemoteFault as e:
            logger.warning(f"Fetching details for {book_id} failed: {e}")
            return None
        
        edition = await self._first_edition(work_path) or {}
        
        names = await asyncio.gather(*(self._author_name(key) for key in author_keys(work)))
        
        correction = self.corrections.get(book_id) or self.corrections.get(work_path) or Correction()
        
        publishers = (
            string_list(work.get("publishers"))
            or string_list(edition.get("publishers"))
            or list(correction.publishers)
        )
        publish_date = (
            parse_publish_date(work)
            or parse_publish_date(edition)
            or correction.publish_date
        )
        number_of_pages = parse_page_count(edition) or correction.number_of_pages
        
        title = work.get("title")
        raw_covers = work.get("covers")
        covers = [
            cover for cover in (raw_covers if isinstance(raw_covers, list) else [])
            if isinstance(cover, int) and not isinstance(cover, bool) and cover > 0
        ]
        
        return RemoteBookDetails(
            title=title if isinstance(title, str) and title else UNTITLED,
            authors=[name for name in names if name],
            publishers=publishers,
            publish_date=publish_date,
            number_of_pages=number_of_pages,
            description=parse_description(work.get("description")),
            covers=covers
        )
    
    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
    
    async def __aenter__(self):
        """Async context manager entry."""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
