"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, Field, StrictStr

from api.exceptions import InvalidBookId


def parse_object_id(value: str) -> ObjectId:
    """
    Convert a path identifier into an ObjectId.

    Args:
        value: Identifier taken from the request path

    Returns:
        ObjectId for the identifier

    Raises:
        InvalidBookId: If the value is not a 24 character hex string
    """
    if not isinstance(value, str) or len(value) != 24:
        raise InvalidBookId(value)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise InvalidBookId(value)


class BookPayload(BaseModel):
    """Request body for creating or updating a book."""
    model_config = ConfigDict(extra="ignore")

    title: StrictStr = Field("", description="Book title")
    author: StrictStr = Field("", description="Book author")
    price: float = Field(0.0, strict=True, allow_inf_nan=False, description="Book price")

    def to_document(self) -> Dict[str, Any]:
        """Map the settable fields to their stored representation."""
        return {
            "title": self.title,
            "author": self.author,
            "price": self.price,
        }


class Book(BaseModel):
    """Book response model for API."""
    id: str = Field(..., description="Unique book identifier (ObjectId hex)")
    title: StrictStr = Field("", description="Book title")
    author: StrictStr = Field("", description="Book author")
    price: float = Field(0.0, strict=True, allow_inf_nan=False, description="Book price")

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "Book":
        """Build a Book from a stored document, mapping _id to id."""
        return cls(
            id=str(document["_id"]),
            title=document.get("title", ""),
            author=document.get("author", ""),
            price=document.get("price", 0.0),
        )


class InsertResponse(BaseModel):
    """Response returned after a book is created."""
    model_config = ConfigDict(populate_by_name=True)

    inserted_id: str = Field(..., alias="insertedID", description="Assigned book identifier")


class MessageResponse(BaseModel):
    """Acknowledgement response."""
    message: str


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
