# src/travel_threads/models/__init__.py
"""SQLAlchemy models for the Travel Threads SQL document store."""

from .document import StoredDocument

__all__ = ["StoredDocument"]
