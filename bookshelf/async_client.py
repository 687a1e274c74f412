"""Async HTTP client for the books REST API."""
import httpx
from typing import List, Optional, Any
from urllib.parse import quote
import logging

from bookshelf.exceptions import RequestError
from bookshelf.models import Book, BookSearchParams
from bookshelf.parse import parse_book, parse_books_response

logger = logging.getLogger(__name__)


class AsyncBookClient:
    """Async client for create, read, update, delete and search on books."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize async client.

        Args:
            base_url: Books resource root, e.g. http://localhost:8080/api/books
            timeout: Request timeout in seconds (None waits indefinitely)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        # Create async HTTP client
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def _url(self, *parts: Any) -> str:
        """Join path segments onto the resource root."""
        if not parts:
            return self.base_url
        return "/".join([self.base_url] + [str(part) for part in parts])

    async def _request(
        self,
        method: str,
        url: str,
        failure: str,
        **kwargs
    ) -> httpx.Response:
        """
        Send one request and fail uniformly on anything but a 2xx.

        Args:
            method: HTTP method
            url: Absolute request URL
            failure: Message for the RequestError raised on failure

        Returns:
            The successful response
        """
        try:
            logger.info(f"{method} {url}")
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{failure}: {e}")
            raise RequestError(failure) from e

        if not response.is_success:
            logger.error(f"{failure}: status {response.status_code}")
            raise RequestError(failure, status_code=response.status_code)

        return response

    @staticmethod
    def _json(response: httpx.Response, failure: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{failure}: invalid JSON body")
            raise RequestError(failure, status_code=response.status_code) from e

    async def _get_book(self, method: str, url: str, failure: str, **kwargs) -> Book:
        response = await self._request(method, url, failure, **kwargs)
        try:
            book = parse_book(self._json(response, failure))
        except (TypeError, ValueError) as e:
            logger.error(f"{failure}: {e}")
            raise RequestError(failure, status_code=response.status_code) from e
        if book is None:
            raise RequestError(failure, status_code=response.status_code)
        return book

    async def _get_books(self, url: str, failure: str, **kwargs) -> List[Book]:
        response = await self._request("GET", url, failure, **kwargs)
        try:
            return parse_books_response(self._json(response, failure))
        except (TypeError, ValueError) as e:
            logger.error(f"{failure}: {e}")
            raise RequestError(failure, status_code=response.status_code) from e

    async def list_all(self) -> List[Book]:
        """
        Fetch every book.

        Returns:
            Books in the order the server returned them
        """
        return await self._get_books(self._url(), "Failed to fetch books")

    async def get_by_id(self, book_id: int) -> Book:
        """Fetch one book by ID."""
        return await self._get_book(
            "GET", self._url(book_id), f"Failed to fetch book with ID {book_id}"
        )

    async def create(self, book: Book) -> Book:
        """
        Create a book.

        Args:
            book: New book; its id is ignored by the server

        Returns:
            The server's canonical book, with its assigned ID

        Raises:
            ValueError: If the book fails validation (no request is sent)
            RequestError: If the request fails
        """
        book.validate()
        return await self._get_book(
            "POST", self._url(), "Failed to create book", json=book.to_payload()
        )

    async def update(self, book_id: int, book: Book) -> Book:
        """
        Replace the book identified by book_id.

        Returns:
            The server's canonical updated book
        """
        book.validate()
        return await self._get_book(
            "PUT",
            self._url(book_id),
            f"Failed to update book with ID {book_id}",
            json=book.to_payload()
        )

    async def delete(self, book_id: int) -> None:
        """Delete the book identified by book_id."""
        await self._request("DELETE", self._url(book_id), f"Failed to delete book with ID {book_id}")

    async def search(self, params: BookSearchParams) -> List[Book]:
        """
        Search books on the server.

        Args:
            params: Filters; only the present ones are sent

        Returns:
            Matching books in server order
        """
        return await self._get_books(
            self._url("search"),
            "Failed to search books",
            params=params.to_query_params()
        )

    async def get_by_author(self, author: str) -> List[Book]:
        """Fetch books by one author."""
        return await self._get_books(
            self._url("author", quote(author, safe="")),
            f'Failed to fetch books by author "{author}"'
        )

    async def get_by_max_price(self, max_price: float) -> List[Book]:
        """Fetch books priced at or below max_price."""
        return await self._get_books(
            self._url("price", "max", max_price),
            f"Failed to fetch books with max price {max_price}"
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
