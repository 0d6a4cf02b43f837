"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock

from api.database import APIDatabaseService
from api.models import BookResponse


def make_book(book_id: str, title: str, author: str, genre: str = None) -> BookResponse:
    """Build a stored book with fixed timestamps."""
    return BookResponse(
        id=book_id,
        title=title,
        author=author,
        genre=genre,
        created_at="2025-01-15T10:30:00",
        updated_at="2025-01-15T10:30:00"
    )


@pytest.fixture
def sample_books():
    """A small catalogue in store order."""
    return [
        make_book("65a1f0c2e4b0a1b2c3d4e5f1", "The Hobbit", "J.R.R. Tolkien", "Fantasy"),
        make_book("65a1f0c2e4b0a1b2c3d4e5f2", "Dune", "Frank Herbert", "Science Fiction"),
        make_book("65a1f0c2e4b0a1b2c3d4e5f3", "The Silmarillion", "J.R.R. Tolkien", "Fantasy"),
        make_book("65a1f0c2e4b0a1b2c3d4e5f4", "Neuromancer", "William Gibson", "Cyberpunk"),
        make_book("65a1f0c2e4b0a1b2c3d4e5f5", "Emma", "Jane Austen", "Romance"),
    ]


@pytest.fixture
def sample_book_docs():
    """Raw MongoDB documents as Motor returns them."""
    from bson import ObjectId
    from datetime import datetime
    
    created = datetime(2025, 1, 15, 10, 30)
    return [
        {
            "_id": ObjectId("65a1f0c2e4b0a1b2c3d4e5f1"),
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "genre": "Fantasy",
            "published_year": 1937,
            "created_at": created,
            "updated_at": created
        },
        {
            "_id": ObjectId("65a1f0c2e4b0a1b2c3d4e5f2"),
            "title": "Dune",
            "author": "Frank Herbert",
            "genre": "Science Fiction",
            "published_year": 1965,
            "created_at": created,
            "updated_at": created
        },
    ]


@pytest.fixture
def mock_db_service():
    """Create a mock database service for route testing."""
    return AsyncMock(spec=APIDatabaseService)


@pytest.fixture
def book_factory():
    """Factory for stored books."""
    return make_book
