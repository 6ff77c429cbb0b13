"""
FastAPI main application for the Books API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from bson import ObjectId
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config
from api.database import BookStore, connect_book_store
from api.exceptions import InvalidBookId, StoreError
from api.models import (
    Book, BookPayload, ErrorResponse, HealthResponse,
    InsertResponse, MessageResponse, parse_object_id
)
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug
    )
    logger.info("Starting Books API")

    try:
        client, app.state.book_store = await connect_book_store(config)
    except StoreError as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("Shutting down Books API")
    app.state.book_store = None
    client.close()


# Create FastAPI application
app = FastAPI(
    title=config.api_title,
    description=config.api_description,
    version=config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, detail: str = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(exclude_none=True),
        headers=headers
    )


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten request validation errors into a single readable message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid request body")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid request body"


# Exception handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report undecodable request bodies as bad requests."""
    message = format_validation_errors(exc)
    logger.debug("Rejected request body", path=request.url.path, error=message)
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=str(exc) if config.debug else None
    )


# Dependencies
def current_book_store(request: Request) -> Optional[BookStore]:
    """Return the book store created at startup, or None before startup."""
    return getattr(request.app.state, "book_store", None)


def get_book_store(store: Optional[BookStore] = Depends(current_book_store)) -> BookStore:
    """Return the book store, failing the request when it is not available."""
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return store


def get_book_id(book_id: str) -> ObjectId:
    """Validate the book identifier from the request path."""
    try:
        return parse_object_id(book_id)
    except InvalidBookId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID")


@app.get("/ping", response_model=MessageResponse, tags=["Health"])
async def ping():
    """Liveness probe."""
    return MessageResponse(message="pong")


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(store: Optional[BookStore] = Depends(current_book_store)):
    """Health check endpoint."""
    db_status = "unavailable"
    if store is not None:
        health_info = await store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=config.api_version,
        database_status=db_status
    )


# Books endpoints
@app.get("/books", response_model=List[Book], tags=["Books"])
async def get_books(store: BookStore = Depends(get_book_store)):
    """Get all books."""
    try:
        return await store.find_all()
    except StoreError as e:
        logger.error("Failed to get books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving books"
        )


@app.get("/books/{book_id}", response_model=Book, tags=["Books"])
async def get_book(
    object_id: ObjectId = Depends(get_book_id),
    store: BookStore = Depends(get_book_store)
):
    """
    Get a single book by ID.

    - **book_id**: 24 character hex ObjectId
    """
    try:
        book = await store.find_by_id(object_id)
    except StoreError as e:
        logger.error("Failed to get book", book_id=str(object_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving book"
        )

    if book is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")
    return book


@app.post(
    "/books",
    response_model=InsertResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Books"]
)
async def create_book(payload: BookPayload, store: BookStore = Depends(get_book_store)):
    """Add a new book. Any id in the body is ignored."""
    try:
        book_id = await store.insert(payload)
    except StoreError as e:
        logger.error("Failed to insert book", title=payload.title, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error inserting book"
        )

    logger.info("Book created", book_id=book_id)
    return InsertResponse(inserted_id=book_id)


@app.put("/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def update_book(
    payload: BookPayload,
    object_id: ObjectId = Depends(get_book_id),
    store: BookStore = Depends(get_book_store)
):
    """
    Update a book by ID.

    Title, author and price are all overwritten; fields missing from the
    body are reset to their defaults.
    """
    try:
        matched = await store.update_by_id(object_id, payload)
    except StoreError as e:
        logger.error("Failed to update book", book_id=str(object_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error updating book"
        )

    if matched == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")

    logger.info("Book updated", book_id=str(object_id))
    return MessageResponse(message="Book updated")


@app.delete("/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def delete_book(
    object_id: ObjectId = Depends(get_book_id),
    store: BookStore = Depends(get_book_store)
):
    """Delete a book by ID."""
    try:
        deleted = await store.delete_by_id(object_id)
    except StoreError as e:
        logger.error("Failed to delete book", book_id=str(object_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error deleting book"
        )

    if deleted == 0:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Book not found")

    logger.info("Book deleted", book_id=str(object_id))
    return MessageResponse(message="Book deleted")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower()
    )
