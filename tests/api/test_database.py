"""
Unit tests for the API database service.
Motor collections are replaced with mocks.
"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId
from pymongo import ReturnDocument

from api.database import APIDatabaseService, InvalidBookIdError, to_book_response, to_object_id
from api.models import BookCreate, BookUpdate
from search.models import DEFAULT_FIELDS


BOOK_ID = "65a1f0c2e4b0a1b2c3d4e5f1"


@pytest.fixture
def mock_collection():
    """Create a mock books collection."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.insert_many = AsyncMock()
    collection.count_documents = AsyncMock()
    collection.find_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def mock_database(mock_collection):
    """Create a mock database exposing the books collection."""
    database = MagicMock()
    database.__getitem__.return_value = mock_collection
    database.command = AsyncMock()
    return database


@pytest.fixture
def service(mock_database):
    """Create the service under test."""
    return APIDatabaseService(mock_database)


def _cursor(docs):
    cursor = MagicMock()
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


class TestHelpers:
    """Test cases for conversion helpers."""
    
    def test_to_object_id(self):
        """Test a valid identifier."""
        assert to_object_id(BOOK_ID) == ObjectId(BOOK_ID)
    
    def test_to_object_id_invalid(self):
        """Test malformed identifiers."""
        with pytest.raises(InvalidBookIdError):
            to_object_id("not-an-id")
        with pytest.raises(InvalidBookIdError):
            to_object_id(123)
    
    def test_to_book_response(self, sample_book_docs):
        """Test converting a raw document."""
        book = to_book_response(sample_book_docs[0])
        
        assert book.id == BOOK_ID
        assert book.title == "The Hobbit"
        assert book.published_year == 1937
        assert book.created_at == "2025-01-15T10:30:00"
        # Source document is left untouched
        assert "_id" in sample_book_docs[0]


class TestAPIDatabaseService:
    """Test cases for APIDatabaseService."""
    
    def test_uses_named_collection(self, mock_database):
        """Test that the configured collection is used."""
        APIDatabaseService(mock_database, "catalogue")
        mock_database.__getitem__.assert_called_with("catalogue")
    
    @pytest.mark.asyncio
    async def test_create_book(self, service, mock_collection):
        """Test inserting a single book."""
        mock_collection.insert_one.return_value = MagicMock(inserted_id=ObjectId(BOOK_ID))
        
        book = await service.create_book(BookCreate(title="Dune", author="Frank Herbert", genre="Science Fiction"))
        
        assert book.id == BOOK_ID
        assert book.title == "Dune"
        assert book.created_at is not None
        stored = mock_collection.insert_one.call_args.args[0]
        assert stored["author"] == "Frank Herbert"
        assert isinstance(stored["created_at"], datetime)
    
    @pytest.mark.asyncio
    async def test_create_books(self, service, mock_collection):
        """Test a batch insert keeps request order."""
        ids = [ObjectId(), ObjectId()]
        mock_collection.insert_many.return_value = MagicMock(inserted_ids=ids)
        
        books = await service.create_books([
            BookCreate(title="Dune", author="Frank Herbert"),
            BookCreate(title="Emma", author="Jane Austen"),
        ])
        
        assert [book.title for book in books] == ["Dune", "Emma"]
        assert [book.id for book in books] == [str(i) for i in ids]
        assert len(mock_collection.insert_many.call_args.args[0]) == 2
    
    @pytest.mark.asyncio
    async def test_create_book_failure_propagates(self, service, mock_collection):
        """Test that insert errors are raised to the caller."""
        mock_collection.insert_one.side_effect = RuntimeError("write failed")
        
        with pytest.raises(RuntimeError):
            await service.create_book(BookCreate(title="Dune", author="Frank Herbert"))
    
    @pytest.mark.asyncio
    async def test_get_books_pagination(self, service, mock_collection, sample_book_docs):
        """Test page arithmetic and metadata."""
        mock_collection.count_documents.return_value = 5
        cursor = _cursor(sample_book_docs)
        mock_collection.find.return_value = cursor
        
        result = await service.get_books(page=2, limit=2)
        
        cursor.skip.assert_called_once_with(2)
        cursor.limit.assert_called_once_with(2)
        assert [book.title for book in result.books] == ["The Hobbit", "Dune"]
        assert result.total == 5
        assert result.total_pages == 3
        assert result.has_next is True
        assert result.has_prev is True
    
    @pytest.mark.asyncio
    async def test_get_book_by_id(self, service, mock_collection, sample_book_docs):
        """Test fetching a book by its identifier."""
        mock_collection.find_one.return_value = sample_book_docs[0]
        
        book = await service.get_book_by_id(BOOK_ID)
        
        assert book.title == "The Hobbit"
        mock_collection.find_one.assert_awaited_once_with({"_id": ObjectId(BOOK_ID)})
    
    @pytest.mark.asyncio
    async def test_get_book_by_id_not_found(self, service, mock_collection):
        """Test a missing book."""
        mock_collection.find_one.return_value = None
        
        assert await service.get_book_by_id(BOOK_ID) is None
    
    @pytest.mark.asyncio
    async def test_get_book_by_invalid_id(self, service, mock_collection):
        """Test that malformed identifiers never reach MongoDB."""
        with pytest.raises(InvalidBookIdError):
            await service.get_book_by_id("nope")
        mock_collection.find_one.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_update_book_sets_only_given_fields(self, service, mock_collection, sample_book_docs):
        """Test that a partial update only touches provided fields."""
        mock_collection.find_one_and_update.return_value = {**sample_book_docs[0], "genre": "Classic"}
        
        book = await service.update_book(BOOK_ID, BookUpdate(genre="Classic"))
        
        assert book.genre == "Classic"
        filter_query, update = mock_collection.find_one_and_update.call_args.args
        assert filter_query == {"_id": ObjectId(BOOK_ID)}
        assert set(update["$set"]) == {"genre", "updated_at"}
        assert mock_collection.find_one_and_update.call_args.kwargs["return_document"] == ReturnDocument.AFTER
    
    @pytest.mark.asyncio
    async def test_update_book_not_found(self, service, mock_collection):
        """Test updating a missing book."""
        mock_collection.find_one_and_update.return_value = None
        
        assert await service.update_book(BOOK_ID, BookUpdate(genre="Classic")) is None
    
    @pytest.mark.asyncio
    async def test_delete_book(self, service, mock_collection):
        """Test deleting a book."""
        mock_collection.delete_one.return_value = MagicMock(deleted_count=1)
        
        assert await service.delete_book(BOOK_ID) is True
    
    @pytest.mark.asyncio
    async def test_delete_book_not_found(self, service, mock_collection):
        """Test deleting a missing book."""
        mock_collection.delete_one.return_value = MagicMock(deleted_count=0)
        
        assert await service.delete_book(BOOK_ID) is False
    
    @pytest.mark.asyncio
    async def test_find_search_candidates(self, service, mock_collection, sample_book_docs):
        """Test that the subsequence filter is pushed down to MongoDB."""
        mock_collection.find.return_value = _cursor(sample_book_docs)
        
        books = await service.find_search_candidates("h(b", DEFAULT_FIELDS)
        
        assert [book.title for book in books] == ["The Hobbit", "Dune"]
        filter_query = mock_collection.find.call_args.args[0]
        assert filter_query["$or"][0] == {"title": {"$regex": "h.*\\(.*b", "$options": "is"}}
        assert len(filter_query["$or"]) == 3
    
    @pytest.mark.asyncio
    async def test_health_check(self, service, mock_collection, mock_database):
        """Test a healthy database."""
        mock_collection.count_documents.return_value = 2
        
        health = await service.health_check()
        
        assert health["status"] == "healthy"
        assert health["books_count"] == 2
        mock_database.command.assert_awaited_once_with("ping")
    
    @pytest.mark.asyncio
    async def test_health_check_failure(self, service, mock_database):
        """Test an unreachable database."""
        mock_database.command.side_effect = RuntimeError("no server")
        
        health = await service.health_check()
        
        assert health["status"] == "unhealthy"
        assert "no server" in health["error"]
