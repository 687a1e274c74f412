"""Text view over a BookStore: filtering, stats, add/edit forms."""
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

from tabulate import tabulate

from bookshelf.exceptions import RequestError
from bookshelf.models import Book
from bookshelf.parse import parse_form_price, parse_price
from bookshelf.store import BookStore

logger = logging.getLogger(__name__)


def filter_books(books: List[Book], query: str) -> List[Book]:
    """
    Case-insensitive substring match on title or author.

    Args:
        books: Books to filter
        query: Search text; empty matches everything

    Returns:
        Matching books in their original order
    """
    needle = query.lower()
    return [
        book for book in books
        if needle in book.title.lower() or needle in book.author.lower()
    ]


@dataclass
class CollectionStats:
    """Aggregate figures for a list of books."""
    count: int
    total_value: float
    average_price: float


def collection_stats(books: List[Book]) -> CollectionStats:
    """Count, total and average price; the average of no books is 0."""
    count = len(books)
    total = sum(parse_price(book.price) for book in books)
    average = total / count if count > 0 else 0.0
    return CollectionStats(count=count, total_value=total, average_price=average)


def _empty_draft() -> Book:
    return Book(title="", author="", price=0.0)


class BookListView:
    """Screen state for the book list: search box, add form, edit form."""

    def __init__(self, store: BookStore, confirm: Optional[Callable[[str], bool]] = None):
        """
        Args:
            store: Source of books and target of every change
            confirm: Asked before deleting; defaults to always yes
        """
        self.store = store
        self.confirm = confirm or (lambda prompt: True)

        self.search_term = ""
        self.new_book = _empty_draft()
        self.editing: Optional[Book] = None
        self.show_form = True

    @property
    def visible_books(self) -> List[Book]:
        return filter_books(self.store.books, self.search_term)

    @property
    def stats(self) -> CollectionStats:
        return collection_stats(self.store.books)

    def toggle_form(self):
        self.show_form = not self.show_form

    def set_draft(self, **fields):
        """Change fields of the new-book form. Unparseable prices fall back to 0."""
        if "price" in fields:
            fields["price"] = parse_form_price(fields["price"])
        self.new_book = replace(self.new_book, **fields)

    async def submit_new(self) -> Optional[Book]:
        """
        Send the add form. The form is cleared only on success.

        Returns:
            The created book, or None if the request failed
        """
        try:
            created = await self.store.add(self.new_book)
        except (RequestError, ValueError) as e:
            logger.error(f"Failed to add book: {e}")
            return None

        self.new_book = _empty_draft()
        return created

    def start_edit(self, book: Book):
        """Open the edit form on a copy of book, dropping any edit in progress."""
        self.editing = replace(book)

    def edit(self, **fields):
        if self.editing is None:
            raise RuntimeError("No book is being edited")
        if "price" in fields:
            fields["price"] = parse_form_price(fields["price"])
        self.editing = replace(self.editing, **fields)

    def cancel_edit(self):
        self.editing = None

    async def submit_edit(self) -> Optional[Book]:
        """
        Save the edit form. The form stays open if saving fails.

        Returns:
            The updated book, or None if nothing was saved
        """
        if self.editing is None:
            return None
        if not self.editing.is_materialized:
            logger.error("Failed to update book: it has no ID yet")
            return None

        try:
            updated = await self.store.update(self.editing.id, self.editing)
        except (RequestError, ValueError) as e:
            logger.error(f"Failed to update book: {e}")
            return None

        self.editing = None
        return updated

    async def delete(self, book_id: int) -> bool:
        """
        Delete a book after confirmation.

        Returns:
            True if the book was removed
        """
        if not self.confirm("Are you sure you want to delete this book?"):
            return False

        try:
            await self.store.remove(book_id)
        except RequestError as e:
            logger.error(f"Failed to delete book: {e}")
            return False
        return True

    def render(self) -> str:
        """Render the current screen as text."""
        title = "Elite Book Collection"

        if self.store.is_loading:
            return f"{title}\n\nLoading your library..."

        if self.store.last_error:
            return f"{title}\n\nError: {self.store.last_error}"

        stats = self.stats
        lines = [
            title,
            "",
            tabulate(
                [[stats.count, f"${stats.total_value:.2f}", f"${stats.average_price:.2f}"]],
                headers=["Total Books", "Collection Value", "Avg. Price"],
                tablefmt="simple"
            ),
            ""
        ]

        if self.show_form:
            draft = self.new_book
            lines.append(
                f"New book: title=\"{draft.title}\" author=\"{draft.author}\" price=${draft.price_str}"
            )
            lines.append("")

        if not self.store.books:
            lines.append("Your library awaits! Add your first book to get started.")
            return "\n".join(lines)

        rows = [
            [book.id, book.title, book.author, f"${book.price_str}"]
            for book in self.visible_books
        ]
        lines.append(tabulate(rows, headers=["ID", "Title", "Author", "Price"], tablefmt="grid"))

        if self.editing is not None:
            lines.append("")
            lines.append(
                f"Editing #{self.editing.id}: {self.editing.title} - "
                f"{self.editing.author} (${self.editing.price_str})"
            )

        return "\n".join(lines)
