"""
API routes for the Innovation Insights Engine.
Defines all FastAPI endpoint handlers.
"""

from fastapi import APIRouter, Depends, File, Header, HTTPException, UploadFile
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Mapping, Optional
import logging

from ..config import settings
from ..database.db import get_db
from ..database.document_service import DocumentService, DocumentTooLargeError
from ..database.saved_search_service import SavedSearchService
from ..ingestion.search_providers import PROVIDERS, SearchProvider, SearchResult
from ..ai.client import AIServiceError, CompletionClient
from ..ai.document_chat import ChatDocument, chat_with_documents
from ..ai.synthesizer import analyze_charts, synthesize_results
from ..services.aggregator import DEFAULT_SOURCES, SearchFailedError, SearchOptions, search_all_sources
from ..services.analytics import build_chart_data, extract_competitive_landscape
from ..services.categorizer import INSIGHT_CATEGORIES, categorize_results
from ..services.date_filter import AdvancedFilterOptions, apply_advanced_filters
from ..services.export_service import EXPORT_FORMATS, export_results
from .schemas import (
    AnalyzeChartsRequest,
    ChatRequest,
    ExportRequest,
    FilterRequest,
    ResultsRequest,
    SaveSearchRequest,
    SearchRequest,
    SynthesizeRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# -- Dependencies --------------------------------------------------------------

def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Caller identity for user-scoped endpoints."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return x_user_id


def get_completion_client() -> CompletionClient:
    return CompletionClient()


def get_document_service() -> DocumentService:
    return DocumentService()


def get_search_providers() -> Optional[Mapping[str, SearchProvider]]:
    """None means: build the registered adapters per request."""
    return None


def _to_results(items: List[Dict[str, Any]]) -> List[SearchResult]:
    return [SearchResult.from_dict(item) for item in items]


def _ai_http_error(e: AIServiceError) -> HTTPException:
    logger.error(f"❌ AI error ({e.status_code}): {e}")
    return HTTPException(status_code=e.status_code, detail=str(e))


def _db_http_error(e: SQLAlchemyError) -> HTTPException:
    logger.error(f"❌ Database error: {e}")
    return HTTPException(status_code=500, detail="Database error")


# -- Health & metadata -----------------------------------------------------------

@router.get("/")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Dict[str, str]: Status message
    """
    return {
        "status": "healthy",
        "message": f"{settings.APP_NAME} API is running",
        "version": settings.APP_VERSION
    }


@router.get("/sources")
async def list_sources() -> Dict[str, Any]:
    """Registered source adapters and whether each is on by default."""
    return {
        "sources": [
            {"name": name, "label": cls.source, "default_enabled": DEFAULT_SOURCES.get(name, False)}
            for name, cls in PROVIDERS.items()
        ],
        "insight_categories": list(INSIGHT_CATEGORIES),
    }


# -- Search pipeline -----------------------------------------------------------

@router.post("/search")
async def search(
    request: SearchRequest,
    x_user_id: Optional[str] = Header(None),
    providers: Optional[Mapping[str, SearchProvider]] = Depends(get_search_providers),
    client: CompletionClient = Depends(get_completion_client),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Run a multi-source search.

    Returns:
        Dict with results, count and, when requested, synthesis.
        A synthesis failure does not fail the search: the error is returned
        as synthesis_error. Same for saving (saved=False).
    """
    if request.save and not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required to save searches")

    sources = dict(DEFAULT_SOURCES)
    if request.sources is not None:
        sources.update(request.sources)
    options = SearchOptions(query=request.query, max_results=request.max_results, sources=sources)

    try:
        results = await search_all_sources(options, providers=providers)
    except SearchFailedError as e:
        logger.error(f"❌ Search failed: {e}")
        raise HTTPException(status_code=502, detail="Search failed")

    response: Dict[str, Any] = {
        "query": request.query,
        "results": [r.to_dict() for r in results],
        "count": len(results),
    }

    synthesis = None
    if request.synthesize and results:
        try:
            synthesis = await synthesize_results(request.query, results, client=client)
            response["synthesis"] = synthesis
        except AIServiceError as e:
            logger.error(f"❌ Synthesis failed after search: {e}")
            response["synthesis_error"] = str(e)

    if request.save:
        try:
            saved = SavedSearchService.save_search(
                db, x_user_id, request.query, results,
                sources=sources, max_results=request.max_results, synthesis=synthesis,
            )
            response["saved_search_id"] = saved["id"]
            response["saved"] = True
        except SQLAlchemyError:
            response["saved"] = False

    return response


@router.post("/categorize")
async def categorize(request: ResultsRequest) -> Dict[str, Any]:
    """Tag results with an insight category (existing tags are replaced)."""
    results = _to_results(request.results)
    categorize_results(results, overwrite=True)
    return {"results": [r.to_dict() for r in results], "count": len(results)}


@router.post("/filter")
async def filter_results(request: FilterRequest) -> Dict[str, Any]:
    """Apply date range, category and source filters to a result set."""
    try:
        filters = AdvancedFilterOptions(
            date_from=request.date_from,
            date_to=request.date_to,
            insight_categories=request.insight_categories,
            sources=request.sources,
            boolean_operator=request.boolean_operator,
            min_market_impact=request.min_market_impact,
        )
        filtered = apply_advanced_filters(_to_results(request.results), filters)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"results": [r.to_dict() for r in filtered], "count": len(filtered)}


@router.post("/synthesize")
async def synthesize(
    request: SynthesizeRequest,
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, Any]:
    results = _to_results(request.results)
    try:
        synthesis = await synthesize_results(request.query, results, client=client)
    except AIServiceError as e:
        raise _ai_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "synthesis": synthesis,
        "competitive_landscape": extract_competitive_landscape(results, synthesis),
    }


@router.post("/chart-data")
async def chart_data(request: ResultsRequest) -> Dict[str, Any]:
    return build_chart_data(_to_results(request.results))


@router.post("/analyze-charts")
async def analyze(
    request: AnalyzeChartsRequest,
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, Any]:
    results = _to_results(request.results)
    data = request.chart_data or build_chart_data(results)
    try:
        analysis = await analyze_charts(request.query, data, results, client=client)
    except AIServiceError as e:
        raise _ai_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"analysis": analysis}


@router.post("/export/{fmt}")
async def export(fmt: str, request: ExportRequest) -> Response:
    """Download results as csv, bibtex, ris, endnote or html."""
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(status_code=404, detail=f"Unknown export format '{fmt}'")
    exported = export_results(fmt, _to_results(request.results), request.query, request.synthesis)
    return Response(
        content=exported["content"],
        media_type=f"{exported['media_type']}; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{exported["filename"]}"'},
    )


# -- Saved searches ------------------------------------------------------------

@router.get("/saved-searches")
async def list_saved_searches(
    q: Optional[str] = None,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        searches = SavedSearchService.list_searches(db, user_id, filter_query=q)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    return {"saved_searches": searches, "count": len(searches)}


@router.post("/saved-searches", status_code=201)
async def create_saved_search(
    request: SaveSearchRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        return SavedSearchService.save_search(
            db, user_id, request.query, _to_results(request.results),
            sources=request.sources, max_results=request.max_results, synthesis=request.synthesis,
        )
    except SQLAlchemyError as e:
        raise _db_http_error(e)


@router.get("/saved-searches/{search_id}")
async def get_saved_search(
    search_id: int,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        saved = SavedSearchService.get_search(db, user_id, search_id)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    if saved is None:
        raise HTTPException(status_code=404, detail="Saved search not found")
    return saved


@router.delete("/saved-searches/{search_id}")
async def delete_saved_search(
    search_id: int,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        deleted = SavedSearchService.delete_search(db, user_id, search_id)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Saved search not found")
    return {"deleted": True, "id": search_id}


# -- Documents -----------------------------------------------------------------

@router.get("/documents")
async def list_documents(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
) -> Dict[str, Any]:
    try:
        docs = documents.list_documents(db, user_id)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    return {"documents": docs, "count": len(docs)}


@router.post("/documents", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
) -> Dict[str, Any]:
    content = await file.read()
    try:
        return documents.upload(db, user_id, file.filename or "document", content, file.content_type)
    except DocumentTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except SQLAlchemyError as e:
        raise _db_http_error(e)


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: int,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
) -> Dict[str, Any]:
    try:
        deleted = documents.delete(db, user_id, document_id)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    if not deleted:
        raise HTTPException(status_code=404, detail="Document not found")
    return {"deleted": True, "id": document_id}


@router.post("/documents/chat")
async def chat(
    request: ChatRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
    documents: DocumentService = Depends(get_document_service),
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, str]:
    """Chat, summarize, extract key findings, compare or meta-analyze documents."""
    ids = [request.document_id] if request.document_id is not None else request.document_ids
    try:
        rows = documents.get_documents(db, user_id, ids)
    except SQLAlchemyError as e:
        raise _db_http_error(e)
    if ids and not rows:
        raise HTTPException(status_code=404, detail="Document not found")

    selected = [ChatDocument(filename=row.filename, text=documents.read_text(row)) for row in rows]
    try:
        reply = await chat_with_documents(
            selected,
            mode=request.mode,
            message=request.message,
            history=[{"role": t.role, "content": t.content} for t in request.conversation_history],
            single_document=request.document_id is not None,
            client=client,
        )
    except AIServiceError as e:
        raise _ai_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"response": reply}
