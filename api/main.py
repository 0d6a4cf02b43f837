"""
FastAPI main application for the Library API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional, Union

import structlog
from fastapi import Body, Depends, FastAPI, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config as api_config
from api.database import APIDatabaseService, InvalidBookIdError
from api.middleware import RequestLoggingMiddleware
from api.models import (
    BookCreate, BookCreatedResponse, BookListResponse, BookResponse, BookUpdate,
    ErrorResponse, HealthResponse, MessageResponse, SearchResponse
)
from search import DEFAULT_FIELDS, InvalidQueryError, NoMatch, SearchTimeoutError, search_records
from utilities.config import config
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Global database service
db_service: Optional[APIDatabaseService] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Library API")
    
    global db_service
    client = AsyncIOMotorClient(config.mongodb_url)
    try:
        database = client[config.mongodb_database]
        
        # Test connection
        await database.command("ping")
        logger.info("Database connection established", database=config.mongodb_database)
        
        db_service = APIDatabaseService(database, config.mongodb_collection)
        
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        client.close()
        raise
    
    yield
    
    # Shutdown
    logger.info("Shutting down Library API")
    db_service = None
    client.close()


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    docs_url=api_config.docs_url,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)
app.add_middleware(RequestLoggingMiddleware)


def get_db_service() -> APIDatabaseService:
    """Resolve the database service, failing when it is not connected."""
    if not db_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return db_service


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).dict(),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Report invalid request input as a client error."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="Invalid input",
            detail="; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ),
            status_code=status.HTTP_400_BAD_REQUEST
        ).dict()
    )


@app.exception_handler(InvalidBookIdError)
async def invalid_book_id_handler(request, exc: InvalidBookIdError):
    """Handle malformed book identifiers."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(
            error="Invalid ID",
            detail=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST
        ).dict()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).dict()
    )


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    return "Library API"


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if db_service:
        health_info = await db_service.health_check()
        db_status = health_info.get("status", "unknown")
    
    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )


# Books endpoints
@app.post(
    "/books",
    response_model=BookCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    tags=["Books"]
)
async def create_books(
    payload: Union[List[BookCreate], BookCreate] = Body(...),
    service: APIDatabaseService = Depends(get_db_service)
):
    """
    Add a single book or bulk insert books.
    
    Send one book object, or an array of up to 20 books.
    """
    if isinstance(payload, list):
        if not payload:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty array not allowed."
            )
        if len(payload) > api_config.max_bulk_insert:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Max {api_config.max_bulk_insert} books allowed in one bulk request."
            )
        
        books = await service.create_books(payload)
        return BookCreatedResponse(message="Books added successfully", data=books)
    
    book = await service.create_book(payload)
    return BookCreatedResponse(message="Book added successfully", data=book)


@app.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(
    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    limit: int = Query(api_config.default_page_size, ge=1, le=api_config.max_page_size, description="Books per page"),
    service: APIDatabaseService = Depends(get_db_service)
):
    """
    Get all books with pagination.
    
    - **page**: Page number (starts from 1)
    - **limit**: Items per page
    """
    return await service.get_books(page, limit)


@app.get(
    "/books/search",
    response_model=SearchResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Search"]
)
async def search_books(
    q: Optional[str] = Query(None, description="Search text matched against title, author and genre"),
    service: APIDatabaseService = Depends(get_db_service)
):
    """
    Fuzzy search for books by title, author, or genre.
    
    Tolerates typos and skipped letters: "tlkn" finds "Tolkien". Results are
    ordered best match first.
    """
    if not q:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Query param "q" is required'
        )
    
    try:
        candidates = await service.find_search_candidates(q, DEFAULT_FIELDS)
        outcome = await run_in_threadpool(
            search_records,
            q,
            candidates,
            fields=DEFAULT_FIELDS,
            max_results=config.search_max_results,
            score_threshold=config.search_score_threshold,
            deadline=time.monotonic() + config.search_timeout_seconds
        )
    except InvalidQueryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SearchTimeoutError as e:
        logger.warning("Search timed out", scored=e.scored, total=e.total)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Search timed out")
    except Exception as e:
        logger.error("Fuzzy search failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Search failed: {e}" if api_config.debug else "Search failed"
        )
    
    if isinstance(outcome, NoMatch):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No matching books found"
        )
    
    return SearchResponse(results=outcome.records, total=outcome.total)


@app.get(
    "/books/{book_id}",
    response_model=BookResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Books"]
)
async def get_book(book_id: str, service: APIDatabaseService = Depends(get_db_service)):
    """
    Get a book by ID.
    
    - **book_id**: MongoDB ObjectId of the book
    """
    book = await service.get_book_by_id(book_id)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return book


@app.put(
    "/books/{book_id}",
    response_model=BookResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Books"]
)
async def update_book(
    book_id: str,
    update: BookUpdate,
    service: APIDatabaseService = Depends(get_db_service)
):
    """Update a book by ID. Only the fields present in the body change."""
    book = await service.update_book(book_id, update)
    if not book:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return book


@app.delete(
    "/books/{book_id}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Books"]
)
async def delete_book(book_id: str, service: APIDatabaseService = Depends(get_db_service)):
    """Delete a book by ID."""
    if not await service.delete_book(book_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return MessageResponse(message="Deleted")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=True,
        log_level="info"
    )
