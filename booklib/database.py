"""Local catalog of saved books, stored in SQLite."""
import sqlite3
from typing import Optional, List
import logging

from booklib.errors import StorageFault
from booklib.models import (
    SavedBook,
    UNTITLED,
    UNKNOWN_AUTHOR,
    UNCATEGORIZED,
    PLACEHOLDER_COVER_URL,
)

logger = logging.getLogger(__name__)


class Database:
    """Single-table SQLite catalog of saved books.
    
    Lifecycle is explicit: construct with a path, call ``init_schema()`` to
    open the file and bring the schema up to date, then use it. The owner
    closes it when done.
    """
    
    def __init__(self, db_path: str):
        """
        Prepare a catalog backed by the given file.
        
        Args:
            db_path: SQLite database file (":memory:" for a throwaway catalog)
        """
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None
    
    def init_schema(self):
        """Open the database and create or migrate the books table.
        
        Safe to call on every start. Tables created by older versions lack
        the ``category`` column; it is added in place, keeping existing rows.
        """
        try:
            if self.conn is None:
                self.conn = sqlite3.connect(self.db_path)
                self.conn.row_factory = sqlite3.Row
            
            cur = self.conn.cursor()
            cur.execute("PRAGMA journal_mode = WAL")
            cur.execute("""
                CREATE TABLE IF NOT EXISTS books (
                    id TEXT PRIMARY KEY NOT NULL,
                    title TEXT NOT NULL,
                    author TEXT,
                    cover_url TEXT,
                    saved_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    category TEXT
                )
            """)
            
            cur.execute("PRAGMA table_info(books)")
            columns = [row[1] for row in cur.fetchall()]
            if "category" not in columns:
                cur.execute("ALTER TABLE books ADD COLUMN category TEXT")
                logger.info("Added category column to books table")
            
            self.conn.commit()
            logger.info(f"Database schema initialized successfully ({self.db_path})")
        
        except sqlite3.Error as e:
            if self.conn is not None:
                self.conn.rollback()
            logger.error(f"Failed to initialize database {self.db_path}: {e}")
            raise StorageFault(f"Cannot initialize catalog at {self.db_path}: {e}") from e
    
    def _require_connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StorageFault("Catalog is not initialized; call init_schema() first")
        return self.conn
    
    def upsert_book(self, book: SavedBook):
        """
        Insert a book or replace the stored fields of the row with its id.
        
        The original ``saved_at`` of an existing row is kept. Empty optional
        fields are stored as empty strings.
        
        Args:
            book: SavedBook to store
            
        Raises:
            StorageFault: if the id is empty or the write fails
        """
        if book.id is None:
            raise StorageFault("Cannot save a book without an id")
        
        conn = self._require_connection()
        try:
            conn.execute("""
                INSERT INTO books (id, title, author, cover_url, category)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (id) DO UPDATE SET
                    title = excluded.title,
                    author = excluded.author,
                    cover_url = excluded.cover_url,
                    category = excluded.category
            """, (
                book.id,
                book.title or "",
                book.author or "",
                book.cover_url or "",
                book.category or ""
            ))
            conn.commit()
            logger.info(f"Saved book {book.id} ({book.title or UNTITLED})")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Failed to save book {book.id}: {e}")
            raise StorageFault(f"Failed to save book {book.id}: {e}") from e
    
    def list_books(self) -> List[SavedBook]:
        """
        Return every saved book with blank fields replaced by display defaults.
        
        No ordering is guaranteed. Storage errors are logged and an empty
        list is returned.
        """
        if self.conn is None:
            logger.error("Catalog is not initialized; returning no books")
            return []
        
        try:
            rows = self.conn.execute("""
                SELECT id, title, author, cover_url, category, saved_at
                FROM books
            """).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to list books: {e}")
            return []
        
        return [
            SavedBook(
                id=row["id"],
                title=row["title"] or UNTITLED,
                author=row["author"] or UNKNOWN_AUTHOR,
                cover_url=row["cover_url"] or PLACEHOLDER_COVER_URL,
                category=row["category"] or UNCATEGORIZED,
                saved_at=row["saved_at"]
            )
            for row in rows
        ]
    
    def delete_book(self, book_id: str):
        """
        Remove a saved book. Unknown ids are ignored.
        
        Raises:
            StorageFault: if the delete fails
        """
        conn = self._require_connection()
        try:
            cur = conn.execute("DELETE FROM books WHERE id = ?", (book_id,))
            conn.commit()
            if cur.rowcount:
                logger.info(f"Deleted book {book_id}")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Failed to delete book {book_id}: {e}")
            raise StorageFault(f"Failed to delete book {book_id}: {e}") from e
    
    def count_books(self) -> int:
        """Number of saved books (0 if the catalog cannot be read)."""
        if self.conn is None:
            return 0
        try:
            return self.conn.execute("SELECT COUNT(*) FROM books").fetchone()[0]
        except sqlite3.Error as e:
            logger.error(f"Failed to count books: {e}")
            return 0
    
    def close(self):
        """Close the database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed")
    
    def __enter__(self):
        """Context manager entry."""
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
