import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from .base import CLINICAL_TRIALS, SearchProvider, SearchResult, StrategyFn
from .parsing import UNKNOWN

logger = logging.getLogger(__name__)

CLINICAL_TRIALS_URL = "https://clinicaltrials.gov/api/v2/studies"
MAX_PAGE_SIZE = 1000
MAX_SUMMARY_CHARS = 800


def _start_date(status_module: Dict[str, Any]) -> Optional[str]:
    """Registry dates are "YYYY-MM-DD" or "YYYY-MM"."""
    raw = (status_module.get("startDateStruct") or {}).get("date")
    if not raw:
        return None
    if len(raw) == 7:
        return f"{raw}-01"
    return raw


class ClinicalTrialsProvider(SearchProvider):
    """ClinicalTrials.gov v2 registry search."""

    name = "clinical"
    source = CLINICAL_TRIALS

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        return [("clinicaltrials_gov", self._search_registry)]

    async def _search_registry(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            CLINICAL_TRIALS_URL,
            params={
                "format": "json",
                "query.term": query,
                "pageSize": min(limit, MAX_PAGE_SIZE),
                "sort": "LastUpdatePostDate:desc",
            },
        )
        response.raise_for_status()

        results = []
        for study in response.json().get("studies", []):
            result = self._from_study(study)
            if result:
                results.append(result)
        return results[:limit]

    def _from_study(self, study: Dict[str, Any]) -> Optional[SearchResult]:
        protocol = study.get("protocolSection") or {}
        ident = protocol.get("identificationModule") or {}
        nct_id = ident.get("nctId")
        if not nct_id:
            return None

        status_module = protocol.get("statusModule") or {}
        design = protocol.get("designModule") or {}
        sponsor = (protocol.get("sponsorCollaboratorsModule") or {}).get("leadSponsor") or {}
        summary = ((protocol.get("descriptionModule") or {}).get("briefSummary") or "").strip()
        enrollment = (design.get("enrollmentInfo") or {}).get("count")
        phases = design.get("phases") or []

        return SearchResult(
            source=CLINICAL_TRIALS,
            id=nct_id,
            title=ident.get("briefTitle") or ident.get("officialTitle") or "No title",
            abstract=summary[:MAX_SUMMARY_CHARS] or None,
            authors=sponsor.get("name") or UNKNOWN,
            date=_start_date(status_module) or UNKNOWN,
            status=status_module.get("overallStatus"),
            phase=", ".join(phases) or None,
            enrollment=str(enrollment) if enrollment is not None else None,
            url=f"https://clinicaltrials.gov/study/{nct_id}",
        )
