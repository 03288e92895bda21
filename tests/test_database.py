"""Tests for the local catalog store."""
import sqlite3

import pytest

from booklib.database import Database
from booklib.errors import StorageFault
from booklib.models import (
    SavedBook,
    PLACEHOLDER_COVER_URL,
    UNCATEGORIZED,
    UNKNOWN_AUTHOR,
    UNTITLED,
)


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "library.db"))
    database.init_schema()
    yield database
    database.close()


def test_upsert_then_list_returns_single_row(db):
    """Test that a saved book reads back once with its fields."""
    book = SavedBook(
        id="/works/OL1184991W",
        title="The Old Man and the Sea",
        author="Ernest Hemingway",
        cover_url="https://covers.openlibrary.org/b/id/1-M.jpg",
        category="hemingway"
    )
    
    db.upsert_book(book)
    books = db.list_books()
    
    assert len(books) == 1
    saved = books[0]
    assert saved.id == book.id
    assert saved.title == book.title
    assert saved.author == book.author
    assert saved.cover_url == book.cover_url
    assert saved.category == "hemingway"
    assert saved.saved_at


def test_blank_fields_read_as_defaults(db):
    """Test that blank fields are stored empty and read back defaulted."""
    db.upsert_book(SavedBook(id="/works/OL1W"))
    
    raw = db.conn.execute("SELECT title, author, cover_url, category FROM books").fetchone()
    assert tuple(raw) == ("", "", "", "")
    
    book = db.list_books()[0]
    assert book.title == UNTITLED
    assert book.author == UNKNOWN_AUTHOR
    assert book.cover_url == PLACEHOLDER_COVER_URL
    assert book.category == UNCATEGORIZED


def test_upsert_is_idempotent(db):
    """Test that saving the same book twice keeps one row."""
    book = SavedBook(id="/works/OL1W", title="Book", author="Author")
    
    db.upsert_book(book)
    db.upsert_book(book)
    
    assert len(db.list_books()) == 1
    assert db.count_books() == 1


def test_resave_replaces_fields_but_keeps_saved_at(db):
    """Test that re-saving under another query replaces the row in place."""
    db.upsert_book(SavedBook(id="/works/OL1W", title="Old", category="first"))
    db.conn.execute("UPDATE books SET saved_at = '2020-01-01 00:00:00'")
    db.conn.commit()
    
    db.upsert_book(SavedBook(id="/works/OL1W", title="New", category="second"))
    
    books = db.list_books()
    assert len(books) == 1
    assert books[0].title == "New"
    assert books[0].category == "second"
    assert books[0].saved_at == "2020-01-01 00:00:00"


def test_delete_missing_id_is_noop(db):
    """Test that deleting an unknown id neither fails nor changes the list."""
    db.upsert_book(SavedBook(id="/works/OL1W", title="Book"))
    before = db.list_books()
    
    db.delete_book("/works/OL404W")
    
    assert db.list_books() == before


def test_delete_removes_book(db):
    db.upsert_book(SavedBook(id="/works/OL1W", title="Book 1"))
    db.upsert_book(SavedBook(id="/works/OL2W", title="Book 2"))
    
    db.delete_book("/works/OL1W")
    
    assert [book.id for book in db.list_books()] == ["/works/OL2W"]


def test_list_empty_table(db):
    assert db.list_books() == []


def test_upsert_requires_id(db):
    with pytest.raises(StorageFault):
        db.upsert_book(SavedBook(id=None))


def test_write_failures_are_raised(db):
    """Test that storage errors on writes reach the caller."""
    db.conn.execute("DROP TABLE books")
    
    with pytest.raises(StorageFault):
        db.upsert_book(SavedBook(id="/works/OL1W"))
    with pytest.raises(StorageFault):
        db.delete_book("/works/OL1W")


def test_read_failures_give_empty_list(db):
    """Test that storage errors on reads degrade to an empty list."""
    db.conn.execute("DROP TABLE books")
    
    assert db.list_books() == []
    assert db.count_books() == 0


def test_operations_before_init(tmp_path):
    db = Database(str(tmp_path / "library.db"))
    
    assert db.list_books() == []
    with pytest.raises(StorageFault):
        db.upsert_book(SavedBook(id="/works/OL1W"))


def test_init_schema_is_repeatable(db):
    db.upsert_book(SavedBook(id="/works/OL1W", title="Book"))
    
    db.init_schema()
    db.init_schema()
    
    assert len(db.list_books()) == 1


def test_init_schema_unopenable_path(tmp_path):
    db = Database(str(tmp_path / "missing" / "library.db"))
    
    with pytest.raises(StorageFault):
        db.init_schema()


def test_init_schema_migrates_legacy_table(tmp_path):
    """Test that a table from before categories gains the column and keeps rows."""
    path = str(tmp_path / "legacy.db")
    conn = sqlite3.connect(path)
    conn.execute("""
        CREATE TABLE books (
            id TEXT PRIMARY KEY NOT NULL,
            title TEXT NOT NULL,
            author TEXT,
            cover_url TEXT,
            saved_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.execute(
        "INSERT INTO books (id, title, author, cover_url) VALUES (?, ?, ?, ?)",
        ("/works/OL1W", "Legacy Book", "Old Author", "")
    )
    conn.commit()
    conn.close()
    
    with Database(path) as db:
        db.init_schema()
        columns = [row[1] for row in db.conn.execute("PRAGMA table_info(books)")]
        books = db.list_books()
    
    assert "category" in columns
    assert len(books) == 1
    assert books[0].title == "Legacy Book"
    assert books[0].category == UNCATEGORIZED
