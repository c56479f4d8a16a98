"""
Saved search storage.
Every call takes the session and the owning user id; rows of other users are invisible.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..ingestion.search_providers.base import SearchResult
from .models import SavedSearch

logger = logging.getLogger(__name__)


class SavedSearchService:
    """Create, list, fetch and delete saved searches"""

    @staticmethod
    def save_search(
        db: Session,
        user_id: str,
        query: str,
        results: List[SearchResult],
        sources: Optional[Dict[str, bool]] = None,
        max_results: Optional[int] = None,
        synthesis: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Persist a search and its results snapshot.

        Returns:
            Dict of the saved row (without results)
        """
        try:
            row = SavedSearch(
                user_id=user_id,
                query=query,
                sources=json.dumps(sources or {}),
                max_results=max_results,
                results=json.dumps([r.to_dict() for r in results]),
                synthesis=synthesis,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info(f"💾 Saved search '{query}' ({len(results)} results) for user {user_id}")
            return row.to_dict(include_results=False)
        except Exception as e:
            logger.error(f"❌ Error saving search: {e}")
            db.rollback()
            raise

    @staticmethod
    def list_searches(
        db: Session,
        user_id: str,
        filter_query: Optional[str] = None,
        limit: int = 50,
    ) -> List[Dict[str, Any]]:
        """Newest first; `filter_query` is a case-insensitive substring match on the query."""
        q = db.query(SavedSearch).filter(SavedSearch.user_id == user_id)
        if filter_query:
            q = q.filter(SavedSearch.query.ilike(f"%{filter_query}%"))
        rows = q.order_by(SavedSearch.created_at.desc(), SavedSearch.id.desc()).limit(limit).all()
        return [row.to_dict(include_results=False) for row in rows]

    @staticmethod
    def get_search(db: Session, user_id: str, search_id: int) -> Optional[Dict[str, Any]]:
        row = db.query(SavedSearch).filter(
            SavedSearch.id == search_id,
            SavedSearch.user_id == user_id
        ).first()
        return row.to_dict() if row else None

    @staticmethod
    def get_results(db: Session, user_id: str, search_id: int) -> Optional[List[SearchResult]]:
        """Saved results rebuilt as SearchResult objects."""
        data = SavedSearchService.get_search(db, user_id, search_id)
        if data is None:
            return None
        return [SearchResult.from_dict(item) for item in data["results"]]

    @staticmethod
    def delete_search(db: Session, user_id: str, search_id: int) -> bool:
        """
        Returns:
            True if a row was deleted, False if it did not exist
        """
        row = db.query(SavedSearch).filter(
            SavedSearch.id == search_id,
            SavedSearch.user_id == user_id
        ).first()
        if not row:
            return False
        try:
            db.delete(row)
            db.commit()
            logger.info(f"🗑️ Deleted saved search {search_id}")
            return True
        except Exception as e:
            logger.error(f"❌ Error deleting saved search {search_id}: {e}")
            db.rollback()
            raise
