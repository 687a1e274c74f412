"""Configuration management."""
import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _optional_float(value: Optional[str]) -> Optional[float]:
    """Parse an optional float setting; empty means unset."""
    if value is None or not value.strip():
        return None
    return float(value)


class Config:
    """Application configuration."""
    
    # API
    BOOKS_API_URL = os.getenv("BOOKS_API_URL", "http://localhost:8080/api/books")
    BOOKS_API_TIMEOUT = _optional_float(os.getenv("BOOKS_API_TIMEOUT"))
    
    # Store
    DISCARD_STALE_REFRESHES = os.getenv("DISCARD_STALE_REFRESHES", "false").lower() in ("1", "true", "yes")
    
    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
