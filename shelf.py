#!/usr/bin/env python3
"""Bookshelf CLI - manage books on a remote books API."""
import argparse
import asyncio
import csv
import json
import sys
import logging
from typing import List

from tabulate import tabulate
from bookshelf.async_client import AsyncBookClient
from bookshelf.config import Config
from bookshelf.exceptions import RequestError
from bookshelf.models import Book, BookSearchParams
from bookshelf.store import BookStore
from bookshelf.view import BookListView, collection_stats, filter_books

logger = logging.getLogger(__name__)


def make_client(config: Config) -> AsyncBookClient:
    """Build the API client from configuration."""
    return AsyncBookClient(config.BOOKS_API_URL, timeout=config.BOOKS_API_TIMEOUT)


async def open_store(client: AsyncBookClient, config: Config) -> BookStore:
    """Load the collection, failing loudly if the initial load did not work."""
    store = await BookStore.open(client, discard_stale_refreshes=config.DISCARD_STALE_REFRESHES)
    if store.last_error:
        raise RequestError(store.last_error)
    return store


def ask_confirmation(prompt: str) -> bool:
    """Ask a yes/no question on the terminal."""
    answer = input(f"{prompt} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


def book_to_dict(book: Book) -> dict:
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "price": book.price,
        "created_at": book.created_at
    }


def display_books(books: List[Book], format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ID", "Title", "Author", "Price"]
        rows = [
            [
                book.id,
                book.title[:50] + "..." if len(book.title) > 50 else book.title,
                book.author[:30] + "..." if len(book.author) > 30 else book.author,
                f"${book.price_str}"
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book_to_dict(book) for book in books], indent=2))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.author} (${book.price_str})")


async def list_books(args, config: Config):
    """Show the collection, optionally filtered locally."""
    async with make_client(config) as client:
        store = await open_store(client, config)

        if args.format == "table":
            view = BookListView(store)
            view.search_term = args.filter or ""
            print(view.render())
        else:
            display_books(filter_books(store.books, args.filter or ""), args.format)


async def show_book(args, config: Config):
    """Fetch and show a single book."""
    async with make_client(config) as client:
        book = await client.get_by_id(args.id)
        display_books([book], args.format)


async def add_book(args, config: Config):
    """Create a book through the list view."""
    async with make_client(config) as client:
        store = await open_store(client, config)
        view = BookListView(store)
        view.set_draft(title=args.title, author=args.author, price=args.price)
        view.new_book.validate()

        created = await view.submit_new()
        if created is None:
            raise RequestError(store.last_error or "Failed to add book")

        logger.info(f"✅ Added book #{created.id}")
        display_books([created], "table")


async def update_book(args, config: Config):
    """Edit a stored book and save it."""
    async with make_client(config) as client:
        store = await open_store(client, config)
        book = store.get(args.id)
        if book is None:
            raise RequestError(f"Failed to fetch book with ID {args.id}")

        view = BookListView(store)
        view.start_edit(book)
        changes = {
            name: value
            for name, value in (("title", args.title), ("author", args.author), ("price", args.price))
            if value is not None
        }
        view.edit(**changes)
        view.editing.validate()

        updated = await view.submit_edit()
        if updated is None:
            raise RequestError(store.last_error or f"Failed to update book with ID {args.id}")

        logger.info(f"✅ Updated book #{updated.id}")
        display_books([updated], "table")


async def delete_book(args, config: Config):
    """Delete a book after confirmation."""
    async with make_client(config) as client:
        store = await open_store(client, config)
        confirm = (lambda prompt: True) if args.yes else ask_confirmation
        view = BookListView(store, confirm=confirm)

        if await view.delete(args.id):
            logger.info(f"✅ Deleted book #{args.id}")
        elif store.last_error:
            raise RequestError(store.last_error)
        else:
            logger.info("Deletion cancelled")


async def search_books(args, config: Config):
    """Search books on the server."""
    params = BookSearchParams(keyword=args.keyword, author=args.author, max_price=args.max_price)

    async with make_client(config) as client:
        store = BookStore(client)
        books = await store.search(params)

        logger.info(f"Found {len(books)} books")
        display_books(books, args.format)


async def show_stats(args, config: Config):
    """Show collection statistics."""
    async with make_client(config) as client:
        store = await open_store(client, config)
        stats = collection_stats(store.books)

        print("\n" + "=" * 50)
        print("COLLECTION STATISTICS")
        print("=" * 50)
        print(f"Total books: {stats.count}")
        print(f"Collection value: ${stats.total_value:.2f}")
        print(f"Average price: ${stats.average_price:.2f}")
        print("=" * 50 + "\n")


async def export_data(args, config: Config):
    """Export the collection."""
    async with make_client(config) as client:
        store = await open_store(client, config)
        books = store.books

        if args.format == "json":
            data = [book_to_dict(book) for book in books]

            if args.output:
                with open(args.output, 'w') as f:
                    json.dump(data, f, indent=2)
                logger.info(f"✅ Exported {len(books)} books to {args.output}")
            else:
                print(json.dumps(data, indent=2))

        elif args.format == "csv":
            output_file = args.output or "books_export.csv"
            with open(output_file, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)
                writer.writerow(["ID", "Title", "Author", "Price", "Created"])

                for book in books:
                    writer.writerow([
                        book.id,
                        book.title,
                        book.author,
                        book.price_str,
                        book.created_at or ""
                    ])

            logger.info(f"✅ Exported {len(books)} books to {output_file}")


COMMANDS = {
    "list": list_books,
    "show": show_book,
    "add": add_book,
    "update": update_book,
    "delete": delete_book,
    "search": search_books,
    "stats": show_stats,
    "export": export_data,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookshelf - manage a remote book collection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List everything, filtered locally
  %(prog)s list --filter tolkien

  # Add a book
  %(prog)s add --title Dune --author Herbert --price 9.99

  # Server-side search
  %(prog)s search --author Herbert --max-price 20

  # Export data
  %(prog)s export --format csv --output books.csv
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # List command
    list_parser = subparsers.add_parser("list", help="List books")
    list_parser.add_argument("--filter", help="Only show titles or authors containing this text")
    list_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Show command
    show_parser = subparsers.add_parser("show", help="Show one book")
    show_parser.add_argument("id", type=int, help="Book ID")
    show_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a book")
    add_parser.add_argument("--title", required=True, help="Book title")
    add_parser.add_argument("--author", required=True, help="Author name")
    add_parser.add_argument("--price", type=float, default=0.0, help="Price (default: 0)")

    # Update command
    update_parser = subparsers.add_parser("update", help="Update a book")
    update_parser.add_argument("id", type=int, help="Book ID")
    update_parser.add_argument("--title", help="New title")
    update_parser.add_argument("--author", help="New author")
    update_parser.add_argument("--price", type=float, help="New price")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a book")
    delete_parser.add_argument("id", type=int, help="Book ID")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")

    # Search command
    search_parser = subparsers.add_parser("search", help="Search books on the server")
    search_parser.add_argument("--keyword", help="Text to look for")
    search_parser.add_argument("--author", help="Author name")
    search_parser.add_argument("--max-price", type=float, help="Maximum price (inclusive)")
    search_parser.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")

    # Stats command
    subparsers.add_parser("stats", help="Show collection statistics")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export the collection")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")

    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    config = Config()

    # Configure logging
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        asyncio.run(COMMANDS[args.command](args, config))

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except (RequestError, ValueError) as e:
        logger.error(f"❌ {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
