"""
Database models for saved searches and uploaded research documents.
"""

import json
from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class SavedSearch(Base):
    """
    A search the user chose to keep, with its results snapshot.
    Results and source flags are stored as JSON text.
    """
    __tablename__ = "saved_searches"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False)

    query = Column(String(1000), nullable=False)
    sources = Column(Text)  # JSON object of source flag -> enabled
    max_results = Column(Integer)
    results = Column(Text)  # JSON array of result dicts
    synthesis = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('idx_saved_search_user', 'user_id', 'created_at'),
    )

    def to_dict(self, include_results: bool = True):
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "query": self.query,
            "sources": json.loads(self.sources) if self.sources else {},
            "max_results": self.max_results,
            "synthesis": self.synthesis,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        results = json.loads(self.results) if self.results else []
        data["result_count"] = len(results)
        if include_results:
            data["results"] = results
        return data


class UploadedDocument(Base):
    """Metadata row for a research document stored under STORAGE_DIR."""
    __tablename__ = "uploaded_documents"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), nullable=False, index=True)

    filename = Column(String(500), nullable=False)
    storage_path = Column(String(1000), nullable=False)  # relative to STORAGE_DIR
    file_size = Column(Integer)
    mime_type = Column(String(255))
    status = Column(String(50), default="uploaded")

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "filename": self.filename,
            "file_size": self.file_size,
            "mime_type": self.mime_type,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
