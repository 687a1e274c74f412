"""In-memory book collection kept in step with the books API."""
import itertools
import logging
from typing import List, Optional

from bookshelf.async_client import AsyncBookClient
from bookshelf.exceptions import RequestError
from bookshelf.models import Book, BookSearchParams
from bookshelf.parse import deduplicate_books

logger = logging.getLogger(__name__)


class BookStore:
    """
    Holds the book list plus loading/error flags, and routes every change
    through the API client.

    The list only changes after the server confirms a call, so there is no
    rollback path. Overlapping refresh() calls are not coordinated unless
    discard_stale_refreshes is set: by default whichever response resolves
    last becomes the visible list.
    """

    def __init__(self, client: AsyncBookClient, discard_stale_refreshes: bool = False):
        """
        Args:
            client: API client used for every network call
            discard_stale_refreshes: Drop refresh results older than the
                most recently issued refresh
        """
        self.client = client
        self.discard_stale_refreshes = discard_stale_refreshes

        self.books: List[Book] = []
        self.is_loading = False
        self.last_error: Optional[str] = None

        self._refresh_seq = itertools.count(1)
        self._latest_refresh = 0

    @classmethod
    async def open(cls, client: AsyncBookClient, **kwargs) -> "BookStore":
        """Create a store and run its initial load."""
        store = cls(client, **kwargs)
        await store.refresh()
        return store

    async def __aenter__(self):
        await self.refresh()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    def _fail(self, error: RequestError, default: str):
        self.last_error = str(error) or default

    async def refresh(self) -> bool:
        """
        Reload the whole list from the server.

        Failures are recorded in last_error and not raised.

        Returns:
            True if the list was replaced
        """
        seq = next(self._refresh_seq)
        self._latest_refresh = seq

        self.is_loading = True
        self.last_error = None
        try:
            books = await self.client.list_all()
        except RequestError as e:
            if self._is_stale(seq):
                return False
            self._fail(e, "An error occurred")
            logger.warning(f"Refresh failed: {self.last_error}")
            return False
        finally:
            if not self._is_stale(seq):
                self.is_loading = False

        if self._is_stale(seq):
            logger.info(f"Discarding stale refresh #{seq}")
            return False

        self.books = deduplicate_books(books)
        logger.info(f"Loaded {len(self.books)} books")
        return True

    def _is_stale(self, seq: int) -> bool:
        return self.discard_stale_refreshes and seq != self._latest_refresh

    async def add(self, book: Book) -> Book:
        """
        Create a book and append the server's copy to the list.

        Raises:
            RequestError: After recording it in last_error
        """
        try:
            created = await self.client.create(book)
        except RequestError as e:
            self._fail(e, "Failed to add book")
            raise

        if self.get(created.id) is not None:
            logger.warning(f"Server returned existing ID {created.id} for a new book")
            self.books = [created if b.id == created.id else b for b in self.books]
        else:
            self.books = self.books + [created]
        return created

    async def update(self, book_id: int, book: Book) -> Book:
        """
        Update a book and swap the server's copy in at the same position.

        Raises:
            RequestError: After recording it in last_error
        """
        try:
            updated = await self.client.update(book_id, book)
        except RequestError as e:
            self._fail(e, "Failed to update book")
            raise

        self.books = [updated if b.id == book_id else b for b in self.books]
        return updated

    async def remove(self, book_id: int) -> None:
        """
        Delete a book and drop it from the list.

        Raises:
            RequestError: After recording it in last_error
        """
        try:
            await self.client.delete(book_id)
        except RequestError as e:
            self._fail(e, "Failed to delete book")
            raise

        self.books = [b for b in self.books if b.id != book_id]

    async def search(self, params: BookSearchParams) -> List[Book]:
        """
        Run a server-side search. The list is left untouched.

        Raises:
            RequestError: After recording it in last_error
        """
        try:
            return await self.client.search(params)
        except RequestError as e:
            self._fail(e, "Failed to search books")
            raise

    def get(self, book_id: int) -> Optional[Book]:
        """Look up a loaded book by ID."""
        for book in self.books:
            if book.id == book_id:
                return book
        return None
