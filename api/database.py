"""
Database service layer for the FastAPI application.

The service owns every MongoDB round trip. Fuzzy search pushes its cheap
subsequence filter down to MongoDB and hands the returned candidates to the
in-memory ranker.
"""

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from api.models import BookCreate, BookListResponse, BookResponse, BookUpdate
from search.candidate_filter import build_candidate_filter

logger = structlog.get_logger(__name__)


class InvalidBookIdError(ValueError):
    """Raised when a book identifier is not a valid ObjectId."""


def to_object_id(book_id: str) -> ObjectId:
    """
    Convert a path identifier to an ObjectId.
    
    Raises:
        InvalidBookIdError: If the identifier is malformed
    """
    try:
        return ObjectId(book_id)
    except (InvalidId, TypeError) as e:
        raise InvalidBookIdError(f"Invalid book ID '{book_id}'") from e


def to_book_response(book_doc: Dict[str, Any]) -> BookResponse:
    """Convert a raw MongoDB document to the API model."""
    book_doc = dict(book_doc)
    book_doc["id"] = str(book_doc.pop("_id"))
    
    # Convert datetime fields to ISO format strings for JSON serialization
    for field in ("created_at", "updated_at"):
        if book_doc.get(field) and hasattr(book_doc[field], "isoformat"):
            book_doc[field] = book_doc[field].isoformat()
    
    return BookResponse(**book_doc)


class APIDatabaseService:
    """Database service for API operations."""

    def __init__(self, database: AsyncIOMotorDatabase, collection_name: str = "books"):
        self.database = database
        self.books_collection = database[collection_name]

    async def create_book(self, book: BookCreate) -> BookResponse:
        """
        Insert a single book.
        
        Args:
            book: Validated book payload
            
        Returns:
            The stored book with its identifier and timestamps
        """
        now = datetime.utcnow()
        book_doc = {**book.dict(), "created_at": now, "updated_at": now}
        
        try:
            result = await self.books_collection.insert_one(book_doc)
        except Exception as e:
            logger.error("Failed to insert book", title=book.title, error=str(e))
            raise
        
        book_doc["_id"] = result.inserted_id
        logger.debug("Inserted book", book_id=str(result.inserted_id), title=book.title)
        return to_book_response(book_doc)

    async def create_books(self, books: Sequence[BookCreate]) -> List[BookResponse]:
        """
        Insert several books in one batch.
        
        Args:
            books: Validated book payloads
            
        Returns:
            The stored books, in request order
        """
        now = datetime.utcnow()
        book_docs = [{**book.dict(), "created_at": now, "updated_at": now} for book in books]
        
        try:
            result = await self.books_collection.insert_many(book_docs)
        except Exception as e:
            logger.error("Batch insert failed", total=len(book_docs), error=str(e))
            raise
        
        for book_doc, inserted_id in zip(book_docs, result.inserted_ids):
            book_doc["_id"] = inserted_id
        
        logger.info("Batch insert completed", total=len(book_docs))
        return [to_book_response(book_doc) for book_doc in book_docs]

    async def get_books(self, page: int, limit: int) -> BookListResponse:
        """
        Get one page of books in store order.
        
        Args:
            page: Page number, starting from 1
            limit: Books per page
            
        Returns:
            BookListResponse with paginated results
        """
        try:
            skip = (page - 1) * limit
            total = await self.books_collection.count_documents({})
            total_pages = math.ceil(total / limit)
            
            cursor = self.books_collection.find({}).skip(skip).limit(limit)
            book_docs = await cursor.to_list(length=limit)
            
            return BookListResponse(
                books=[to_book_response(book_doc) for book_doc in book_docs],
                total=total,
                page=page,
                limit=limit,
                total_pages=total_pages,
                has_next=page < total_pages,
                has_prev=page > 1
            )

        except Exception as e:
            logger.error("Failed to get books", error=str(e), page=page, limit=limit)
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[BookResponse]:
        """
        Get a single book by ID.
        
        Args:
            book_id: Book identifier
            
        Returns:
            BookResponse if found, None otherwise
        
        Raises:
            InvalidBookIdError: If the identifier is malformed
        """
        object_id = to_object_id(book_id)
        book_doc = await self.books_collection.find_one({"_id": object_id})
        return to_book_response(book_doc) if book_doc else None

    async def update_book(self, book_id: str, update: BookUpdate) -> Optional[BookResponse]:
        """
        Apply a partial update to a book.
        
        Args:
            book_id: Book identifier
            update: Fields to change; unset fields are left alone
            
        Returns:
            The updated book, or None if no book has this ID
        
        Raises:
            InvalidBookIdError: If the identifier is malformed
        """
        object_id = to_object_id(book_id)
        changes = update.dict(exclude_unset=True)
        changes["updated_at"] = datetime.utcnow()
        
        book_doc = await self.books_collection.find_one_and_update(
            {"_id": object_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        if book_doc:
            logger.debug("Updated book", book_id=book_id, fields=sorted(changes))
        return to_book_response(book_doc) if book_doc else None

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book.
        
        Returns:
            True if a book was deleted, False if none had this ID
        
        Raises:
            InvalidBookIdError: If the identifier is malformed
        """
        object_id = to_object_id(book_id)
        result = await self.books_collection.delete_one({"_id": object_id})
        return result.deleted_count > 0

    async def find_search_candidates(self, query: str, fields: Sequence[str]) -> List[BookResponse]:
        """
        Fetch books whose fields could match a fuzzy query.
        
        The subsequence test runs inside MongoDB as an escaped regular
        expression, so only plausible books cross the wire.
        
        Args:
            query: Non-empty search query
            fields: Field names to test
            
        Returns:
            Candidate books in store order
        """
        filter_query = build_candidate_filter(query, fields)
        
        try:
            cursor = self.books_collection.find(filter_query)
            book_docs = await cursor.to_list(length=None)
        except Exception as e:
            logger.error("Failed to fetch search candidates", error=str(e), query_length=len(query))
            raise
        
        return [to_book_response(book_doc) for book_doc in book_docs]

    async def health_check(self) -> Dict:
        """
        Perform database health check.
        
        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.books_collection.count_documents({})
            
            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
