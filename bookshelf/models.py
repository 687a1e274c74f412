"""Data models for books."""
from dataclasses import dataclass
from typing import Optional, Dict, Any


@dataclass
class Book:
    """A book record as exchanged with the books API."""
    title: str
    author: str
    price: float = 0.0
    id: Optional[int] = None
    created_at: Optional[str] = None
    
    @property
    def is_materialized(self) -> bool:
        """True once the server has assigned an identifier."""
        return self.id is not None
    
    @property
    def price_str(self) -> str:
        """Format price with two decimals."""
        return f"{self.price:.2f}"
    
    def validate(self):
        """
        Check the fields the server requires.
        
        Raises:
            ValueError: If title or author is blank, or price is negative
        """
        if not self.title or not self.title.strip():
            raise ValueError("Book title must not be empty")
        if not self.author or not self.author.strip():
            raise ValueError("Book author must not be empty")
        if self.price < 0:
            raise ValueError(f"Book price must not be negative: {self.price}")
    
    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON request body."""
        payload: Dict[str, Any] = {
            "title": self.title,
            "author": self.author,
            "price": self.price
        }
        if self.id is not None:
            payload["id"] = self.id
        if self.created_at is not None:
            payload["createdAt"] = self.created_at
        return payload


@dataclass
class BookSearchParams:
    """Optional filters for a server-side search."""
    keyword: Optional[str] = None
    author: Optional[str] = None
    max_price: Optional[float] = None
    
    def to_query_params(self) -> Dict[str, str]:
        """Return only the filters that are present."""
        params = {}
        if self.keyword:
            params["keyword"] = self.keyword
        if self.author:
            params["author"] = self.author
        if self.max_price is not None:
            params["maxPrice"] = str(self.max_price)
        return params
