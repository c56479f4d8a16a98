"""
Database package for saved searches and uploaded documents.
"""

from .db import init_db, get_db
from .models import SavedSearch, UploadedDocument
from .saved_search_service import SavedSearchService
from .document_service import DocumentService, DocumentTooLargeError

__all__ = [
    "init_db",
    "get_db",
    "SavedSearch",
    "UploadedDocument",
    "SavedSearchService",
    "DocumentService",
    "DocumentTooLargeError",
]
