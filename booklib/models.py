"""Data models for saved and remote books."""
from dataclasses import dataclass, field
from typing import Optional, List

from booklib.config import Config

UNTITLED = "Untitled"
UNKNOWN_AUTHOR = "Unknown Author"
UNCATEGORIZED = "Uncategorized"
PLACEHOLDER_COVER_URL = Config.PLACEHOLDER_COVER_URL


@dataclass
class SavedBook:
    """A book kept in the local catalog."""
    id: str
    title: str = ""
    author: str = ""
    cover_url: Optional[str] = None
    category: Optional[str] = None
    saved_at: Optional[str] = None


@dataclass
class RemoteBookSummary:
    """Search-result projection of an Open Library record."""
    id: str
    title: str
    author: str
    cover_url: Optional[str] = None

    def to_saved_book(self, category: Optional[str] = None) -> SavedBook:
        """Build the record stored when this result is added to the library."""
        return SavedBook(
            id=self.id,
            title=self.title,
            author=self.author,
            cover_url=self.cover_url,
            category=category
        )


@dataclass
class RemoteBookDetails:
    """Detail projection of an Open Library work."""
    title: str
    authors: List[str] = field(default_factory=list)
    publishers: List[str] = field(default_factory=list)
    publish_date: Optional[str] = None
    number_of_pages: Optional[int] = None
    description: str = ""
    covers: List[int] = field(default_factory=list)

    @property
    def authors_str(self) -> str:
        """Format authors as comma-separated string."""
        return ", ".join(self.authors) if self.authors else UNKNOWN_AUTHOR

    @property
    def publishers_str(self) -> str:
        """Format publishers as comma-separated string."""
        return ", ".join(self.publishers) if self.publishers else "Unknown"


@dataclass
class Correction:
    """Curated values for a record Open Library answers incompletely."""
    publishers: List[str] = field(default_factory=list)
    publish_date: Optional[str] = None
    number_of_pages: Optional[int] = None
