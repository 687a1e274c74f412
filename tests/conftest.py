"""Shared fixtures: an in-memory books API served through httpx.MockTransport."""
import json
from typing import Any, Dict, List, Optional
from urllib.parse import unquote

import httpx
import pytest
import pytest_asyncio

from bookshelf.async_client import AsyncBookClient

BASE_URL = "http://books.test/api/books"


class FakeBooksAPI:
    """Minimal REST server for /api/books, recording every request it sees."""

    def __init__(self):
        self.books: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.next_id = 1
        self.fail_status: Optional[int] = None

    def seed(self, *books: Dict[str, Any]):
        for book in books:
            self.books.append({"id": self.next_id, **book})
            self.next_id += 1

    def _find(self, book_id: int) -> Optional[Dict[str, Any]]:
        for book in self.books:
            if book["id"] == book_id:
                return book
        return None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.fail_status is not None:
            return httpx.Response(self.fail_status, json={"error": "boom"})

        path = request.url.path[len("/api/books"):].strip("/")
        parts = [unquote(p) for p in path.split("/")] if path else []
        method = request.method

        if not parts:
            if method == "GET":
                return httpx.Response(200, json=self.books)
            if method == "POST":
                body = json.loads(request.content)
                book = {**body, "id": self.next_id, "createdAt": "2024-01-01T00:00:00"}
                self.next_id += 1
                self.books.append(book)
                return httpx.Response(201, json=book)

        if parts == ["search"] and method == "GET":
            params = request.url.params
            results = self.books
            if "keyword" in params:
                keyword = params["keyword"].lower()
                results = [b for b in results if keyword in b["title"].lower()]
            if "author" in params:
                results = [b for b in results if params["author"].lower() in b["author"].lower()]
            if "maxPrice" in params:
                results = [b for b in results if b["price"] <= float(params["maxPrice"])]
            return httpx.Response(200, json=results)

        if len(parts) == 2 and parts[0] == "author" and method == "GET":
            return httpx.Response(200, json=[b for b in self.books if b["author"] == parts[1]])

        if len(parts) == 3 and parts[:2] == ["price", "max"] and method == "GET":
            limit = float(parts[2])
            return httpx.Response(200, json=[b for b in self.books if b["price"] <= limit])

        if len(parts) == 1 and parts[0].isdigit():
            book = self._find(int(parts[0]))
            if book is None:
                return httpx.Response(404)
            if method == "GET":
                return httpx.Response(200, json=book)
            if method == "PUT":
                body = json.loads(request.content)
                book.update({k: v for k, v in body.items() if k != "id"})
                return httpx.Response(200, json=book)
            if method == "DELETE":
                self.books.remove(book)
                return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def api() -> FakeBooksAPI:
    return FakeBooksAPI()


@pytest_asyncio.fixture
async def client(api):
    """AsyncBookClient wired to the fake API."""
    async with AsyncBookClient(BASE_URL, transport=httpx.MockTransport(api)) as client:
        yield client
