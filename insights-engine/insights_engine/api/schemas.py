"""
Request bodies for the API.

Results travel as plain dicts so both snake_case and the dashboard's
camelCase `insightCategory` are accepted; routes convert them with
SearchResult.from_dict.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..config import settings


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    max_results: int = Field(settings.DEFAULT_MAX_RESULTS, ge=1, le=100)
    sources: Optional[Dict[str, bool]] = None
    synthesize: bool = False
    save: bool = False


class ResultsRequest(BaseModel):
    query: str = ""
    results: List[Dict[str, Any]] = Field(default_factory=list)


class FilterRequest(BaseModel):
    results: List[Dict[str, Any]] = Field(default_factory=list)
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    insight_categories: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)
    boolean_operator: str = "AND"
    min_market_impact: float = 0.0


class SynthesizeRequest(BaseModel):
    query: str = Field(..., min_length=1)
    results: List[Dict[str, Any]] = Field(default_factory=list)


class AnalyzeChartsRequest(BaseModel):
    query: str = ""
    results: List[Dict[str, Any]] = Field(default_factory=list)
    chart_data: Optional[Dict[str, Any]] = None


class ExportRequest(BaseModel):
    query: str = ""
    results: List[Dict[str, Any]] = Field(default_factory=list)
    synthesis: str = ""


class SaveSearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    results: List[Dict[str, Any]] = Field(default_factory=list)
    sources: Dict[str, bool] = Field(default_factory=dict)
    max_results: Optional[int] = None
    synthesis: Optional[str] = None


class ChatTurn(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    mode: str = "chat"
    message: Optional[str] = None
    document_ids: List[int] = Field(default_factory=list)
    # Set when the user asks about one specific document
    document_id: Optional[int] = None
    conversation_history: List[ChatTurn] = Field(default_factory=list)
