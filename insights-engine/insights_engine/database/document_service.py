"""
Uploaded research documents.

Bytes live on disk under STORAGE_DIR/<user_id>/<ms timestamp>-<filename>;
metadata lives in the uploaded_documents table.
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..config import settings
from .models import UploadedDocument

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = {".txt", ".md", ".csv", ".json", ".bib", ".ris", ".enw", ".html", ".xml"}


class DocumentTooLargeError(ValueError):
    """Upload exceeds MAX_UPLOAD_BYTES."""


def _safe_filename(filename: str) -> str:
    name = os.path.basename(filename or "").strip()
    name = re.sub(r"[^\w.\-]", "_", name)
    return name or "document"


def _safe_user_dir(user_id: str) -> str:
    return re.sub(r"[^\w\-]", "_", user_id) or "anonymous"


class DocumentService:
    """Store, list, read and delete uploaded documents"""

    def __init__(self, storage_dir: Optional[str] = None, max_bytes: Optional[int] = None):
        self.storage_dir = Path(storage_dir or settings.STORAGE_DIR)
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def _path(self, doc: UploadedDocument) -> Path:
        return self.storage_dir / doc.storage_path

    def upload(
        self,
        db: Session,
        user_id: str,
        filename: str,
        content: bytes,
        mime_type: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Write the file and record its metadata.

        Raises:
            DocumentTooLargeError: content is over the size limit
        """
        if len(content) > self.max_bytes:
            raise DocumentTooLargeError(
                f"File too large: {len(content)} bytes (max {self.max_bytes // (1024 * 1024)}MB)"
            )

        relative = f"{_safe_user_dir(user_id)}/{int(time.time() * 1000)}-{_safe_filename(filename)}"
        target = self.storage_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)

        try:
            doc = UploadedDocument(
                user_id=user_id,
                filename=filename,
                storage_path=relative,
                file_size=len(content),
                mime_type=mime_type or "application/octet-stream",
                status="uploaded",
            )
            db.add(doc)
            db.commit()
            db.refresh(doc)
        except Exception as e:
            logger.error(f"❌ Error recording document {filename}: {e}")
            db.rollback()
            target.unlink(missing_ok=True)
            raise

        logger.info(f"📎 Stored document '{filename}' ({len(content)} bytes) for user {user_id}")
        return doc.to_dict()

    def list_documents(self, db: Session, user_id: str) -> List[Dict[str, Any]]:
        rows = db.query(UploadedDocument).filter(
            UploadedDocument.user_id == user_id
        ).order_by(UploadedDocument.created_at.desc(), UploadedDocument.id.desc()).all()
        return [row.to_dict() for row in rows]

    def get_documents(self, db: Session, user_id: str, document_ids: List[int]) -> List[UploadedDocument]:
        """Rows owned by the user, in the order requested; unknown ids are dropped."""
        if not document_ids:
            return []
        rows = db.query(UploadedDocument).filter(
            UploadedDocument.user_id == user_id,
            UploadedDocument.id.in_(document_ids)
        ).all()
        by_id = {row.id: row for row in rows}
        return [by_id[i] for i in document_ids if i in by_id]

    def read_text(self, doc: UploadedDocument) -> Optional[str]:
        """Decoded content for text-like documents, None for binaries or missing files."""
        is_text = (doc.mime_type or "").startswith("text/") or Path(doc.filename).suffix.lower() in TEXT_EXTENSIONS
        if not is_text:
            return None
        path = self._path(doc)
        if not path.exists():
            logger.warning(f"⚠️ Document file missing on disk: {doc.storage_path}")
            return None
        return path.read_bytes().decode("utf-8", errors="replace")

    def delete(self, db: Session, user_id: str, document_id: int) -> bool:
        """
        Returns:
            True if the document existed and was removed
        """
        doc = db.query(UploadedDocument).filter(
            UploadedDocument.id == document_id,
            UploadedDocument.user_id == user_id
        ).first()
        if not doc:
            return False

        path = self._path(doc)
        try:
            db.delete(doc)
            db.commit()
        except Exception as e:
            logger.error(f"❌ Error deleting document {document_id}: {e}")
            db.rollback()
            raise
        path.unlink(missing_ok=True)
        logger.info(f"🗑️ Deleted document {document_id}")
        return True
