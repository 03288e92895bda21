#!/usr/bin/env python3
"""Book Explorer CLI - personal library backed by Open Library."""
import argparse
import asyncio
import csv
import sys
import json
from dataclasses import asdict
from typing import List
from tabulate import tabulate
from booklib.client import OpenLibraryClient
from booklib.async_client import AsyncOpenLibraryClient
from booklib.database import Database
from booklib.errors import StorageFault
from booklib.library import enrich_books, group_by_category
from booklib.models import RemoteBookSummary, SavedBook
from booklib.parse import iter_search_results
from booklib.config import Config
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def setup_database(config: Config) -> Database:
    """Open the local catalog and bring its schema up to date."""
    db = Database(config.LIBRARY_DB_PATH)
    db.init_schema()
    return db


def make_async_client(config: Config) -> AsyncOpenLibraryClient:
    return AsyncOpenLibraryClient(
        base_url=config.OPENLIBRARY_BASE_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_concurrent=config.MAX_CONCURRENT
    )


def truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def search_sync(args, config: Config) -> List[RemoteBookSummary]:
    """Search with the blocking client (retries with backoff)."""
    with OpenLibraryClient(
        base_url=config.OPENLIBRARY_BASE_URL,
        timeout=config.DEFAULT_TIMEOUT,
        max_retries=config.DEFAULT_MAX_RETRIES
    ) as client:
        response = client.search(args.query, limit=args.limit)
        if response is None:
            logger.error("Failed to fetch search results")
            return []
        return list(iter_search_results(response))


async def search_async(args, config: Config) -> List[RemoteBookSummary]:
    """Search with the async client."""
    async with make_async_client(config) as client:
        return list(await client.search(args.query, limit=args.limit))


def search_books(args, config: Config):
    """Search Open Library and optionally save picked results."""
    logger.info(f"Searching for: {args.query}")
    if args.use_async:
        results = asyncio.run(search_async(args, config))
    else:
        results = search_sync(args, config)
    
    results = results[:args.limit]
    logger.info(f"Found {len(results)} books")
    display_results(results, args.format)
    
    if not args.save:
        return
    
    # Saved books are filed under the query that found them
    category = args.query.lower()
    with setup_database(config) as db:
        for position in args.save:
            if not 1 <= position <= len(results):
                logger.warning(f"No search result #{position}; skipping")
                continue
            book = results[position - 1].to_saved_book(category=category)
            db.upsert_book(book)
            print(f"{book.title} added to your library!")


def display_results(results: List[RemoteBookSummary], format_type: str):
    """Display search results in specified format."""
    if format_type == "table":
        headers = ["#", "Title", "Author", "ID"]
        rows = [
            [i, truncate(book.title, 50), truncate(book.author, 30), book.id]
            for i, book in enumerate(results, 1)
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))
    
    elif format_type == "json":
        print(json.dumps([asdict(book) for book in results], indent=2))
    
    elif format_type == "compact":
        for i, book in enumerate(results, 1):
            print(f"{i}. {book.title} - {book.author}")


def display_library(books: List[SavedBook], format_type: str):
    """Display saved books grouped by category."""
    if format_type == "json":
        print(json.dumps(
            {category: [asdict(book) for book in group]
             for category, group in group_by_category(books).items()},
            indent=2
        ))
        return
    
    if not books:
        print("Your library is empty. Add books with: search QUERY --save N")
        return
    
    for category, group in group_by_category(books).items():
        print(f"\n{category.upper()}")
        if format_type == "table":
            rows = [
                [truncate(book.title, 50), truncate(book.author, 30), book.saved_at or "", book.id]
                for book in group
            ]
            print(tabulate(rows, headers=["Title", "Author", "Saved", "ID"], tablefmt="grid"))
        else:
            for book in group:
                print(f"  {book.title} - {book.author}")


def list_library(args, config: Config):
    """List saved books, optionally refreshed from Open Library."""
    with setup_database(config) as db:
        books = db.list_books()
    
    if args.enrich and books:
        async def _enrich():
            async with make_async_client(config) as client:
                return await enrich_books(client, books)
        books = asyncio.run(_enrich())
    
    display_library(books, args.format)


async def fetch_details(book_id: str, config: Config):
    async with make_async_client(config) as client:
        return await client.fetch_details(book_id)


def show_book(args, config: Config):
    """Show the detail page of a saved book."""
    with setup_database(config) as db:
        book = next((b for b in db.list_books() if b.id == args.book_id), None)
    
    if book is None:
        print("Book not found in your library.")
        sys.exit(1)
    
    details = asyncio.run(fetch_details(book.id, config))
    
    print("\n" + "=" * 50)
    print(book.title)
    print("=" * 50)
    print(f"Category: {book.category}")
    print(f"Saved:    {book.saved_at or 'Unknown'}")
    
    if details is None:
        print(f"Author:   {book.author}")
        print(f"Cover:    {book.cover_url}")
        print("\nFailed to fetch book details from Open Library.")
        return
    
    cover_url = (
        AsyncOpenLibraryClient.resolve_cover_url(details.covers[0], "L")
        if details.covers else book.cover_url
    )
    print(f"Authors:    {details.authors_str}")
    print(f"Publishers: {details.publishers_str}")
    print(f"Published:  {details.publish_date or 'Unknown'}")
    print(f"Pages:      {details.number_of_pages or 'N/A'}")
    print(f"Cover:      {cover_url}")
    if details.description:
        print("\n" + details.description)


def remove_book(args, config: Config):
    """Delete a saved book."""
    with setup_database(config) as db:
        db.delete_book(args.book_id)
    print(f"Removed {args.book_id}")


def show_stats(args, config: Config):
    """Show library statistics."""
    with setup_database(config) as db:
        total = db.count_books()
        groups = group_by_category(db.list_books())
    
    print("\n" + "=" * 50)
    print("LIBRARY STATISTICS")
    print("=" * 50)
    print(f"Total books saved: {total}")
    for category, group in groups.items():
        print(f"  {category}: {len(group)}")
    print("=" * 50 + "\n")


def export_data(args, config: Config):
    """Export saved books."""
    with setup_database(config) as db:
        books = db.list_books()
    
    if args.format == "json":
        data = [asdict(book) for book in books]
        
        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            logger.info(f"Exported {len(books)} books to {args.output}")
        else:
            print(json.dumps(data, indent=2))
    
    elif args.format == "csv":
        output_file = args.output or "books_export.csv"
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["ID", "Title", "Author", "Category", "Cover", "Saved"])
            for book in books:
                writer.writerow([
                    book.id,
                    book.title,
                    book.author,
                    book.category,
                    book.cover_url,
                    book.saved_at or ""
                ])
        
        logger.info(f"Exported {len(books)} books to {output_file}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Book Explorer - personal library backed by Open Library",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Search and save the first and third results
  %(prog)s search "the old man and the sea" --save 1 3
  
  # List saved books with fresh titles and covers
  %(prog)s list --enrich
  
  # Detail page of a saved book
  %(prog)s show /works/OL1184991W
  
  # Export data
  %(prog)s export --format csv --output books.csv
        """
    )
    
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")
    
    # Search command
    search_parser = subparsers.add_parser("search", help="Search for books")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument("--limit", type=int, default=10, help="Max results (default: 10)")
    search_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    search_parser.add_argument("--save", type=int, nargs="+", metavar="N", help="Save results by position")
    search_parser.add_argument("--async", dest="use_async", action="store_true", help="Use async client")
    
    # List command
    list_parser = subparsers.add_parser("list", help="List saved books by category")
    list_parser.add_argument("--enrich", action="store_true", help="Refresh titles, authors and covers from Open Library")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
    
    # Show command
    show_parser = subparsers.add_parser("show", help="Show details of a saved book")
    show_parser.add_argument("book_id", help="Book id, e.g. /works/OL1184991W")
    
    # Remove command
    remove_parser = subparsers.add_parser("remove", help="Remove a saved book")
    remove_parser.add_argument("book_id", help="Book id")
    
    # Stats command
    subparsers.add_parser("stats", help="Show library statistics")
    
    # Export command
    export_parser = subparsers.add_parser("export", help="Export saved books")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")
    
    args = parser.parse_args()
    
    if not args.command:
        parser.print_help()
        sys.exit(1)
    
    config = Config()
    commands = {
        "search": search_books,
        "list": list_library,
        "show": show_book,
        "remove": remove_book,
        "stats": show_stats,
        "export": export_data,
    }
    
    try:
        commands[args.command](args, config)
    
    except KeyboardInterrupt:
        logger.info("\nInterrupted by user")
        sys.exit(0)
    except StorageFault as e:
        logger.error(f"Library storage error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
