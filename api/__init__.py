"""
FastAPI REST API for the books collection.

This module provides:
- CRUD endpoints over a MongoDB "books" collection
- ObjectId validation for book identifiers
- Bounded-time database access through the BookStore adapter
"""
