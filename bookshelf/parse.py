"""Parse and normalize books API responses."""
import logging
import math
from typing import Dict, Any, List, Optional
from bookshelf.models import Book

logger = logging.getLogger(__name__)


def parse_price(value: Any) -> float:
    """
    Coerce a price to a non-negative float.
    
    Args:
        value: Raw price from JSON
        
    Returns:
        The price, or 0.0 if it cannot be parsed or is negative
    """
    price = parse_form_price(value)
    return price if price >= 0 else 0.0


def parse_form_price(value: Any) -> float:
    """
    Read a price typed into a form.
    
    Only unparseable input falls back to 0.0. Negative numbers are kept so
    that Book.validate() can reject them.
    """
    if isinstance(value, bool):
        return 0.0
    try:
        price = float(value)
    except (TypeError, ValueError):
        return 0.0
    
    if math.isnan(price) or math.isinf(price):
        return 0.0
    return price


def parse_book_id(value: Any) -> Optional[int]:
    """
    Read a server-assigned ID.
    
    Raises:
        ValueError: If the ID is not a whole number
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid book ID: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ValueError(f"Invalid book ID: {value!r}")


def parse_book(item: Dict[str, Any]) -> Optional[Book]:
    """
    Parse a single book object from the API.
    
    Args:
        item: Book JSON object
        
    Returns:
        Book object or None if the item is not an object
        
    Raises:
        ValueError: If the item's ID is not a whole number
    """
    if not isinstance(item, dict):
        logger.warning(f"Skipping malformed book item: {item!r}")
        return None
    
    return Book(
        title=item.get("title") or "",
        author=item.get("author") or "",
        price=parse_price(item.get("price")),
        id=parse_book_id(item.get("id")),
        created_at=item.get("createdAt")
    )


def parse_books_response(response_json: Any) -> List[Book]:
    """
    Parse a JSON array of books, keeping server order.
    
    Args:
        response_json: Decoded response body
        
    Returns:
        List of Book objects
        
    Raises:
        ValueError: If the body is not a list
    """
    if not isinstance(response_json, list):
        raise ValueError(f"Expected a list of books, got {type(response_json).__name__}")
    
    books = []
    
    for item in response_json:
        book = parse_book(item)
        if book:
            books.append(book)
    
    return books


def deduplicate_books(books: List[Book]) -> List[Book]:
    """
    Remove duplicate books by ID.
    
    Books without an ID are kept as-is.
    
    Args:
        books: List of Book objects
        
    Returns:
        Deduplicated list of books
    """
    seen_ids = set()
    unique_books = []
    
    for book in books:
        if book.id is None:
            unique_books.append(book)
        elif book.id not in seen_ids:
            seen_ids.add(book.id)
            unique_books.append(book)
    
    return unique_books
