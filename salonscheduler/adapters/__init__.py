"""
Adapters layer - Storage backends (Firestore and in-memory).
"""

from .documents import (
    appointment_from_document,
    appointment_to_document,
    closure_from_document,
    closure_to_document,
)
from .firestore_store import FirestoreStore
from .memory_store import InMemoryStore

__all__ = [
    "FirestoreStore",
    "InMemoryStore",
    "appointment_from_document",
    "appointment_to_document",
    "closure_from_document",
    "closure_to_document",
]
