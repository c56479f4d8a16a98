"""
Source adapters, keyed by the flag names used in SearchOptions.sources.
"""

from typing import Dict, Type

from .arxiv_provider import ArxivProvider
from .base import ProviderResponse, SearchProvider, SearchResult
from .clinical_provider import ClinicalTrialsProvider
from .ieee_provider import IEEEProvider
from .news_provider import IndustryNewsProvider, NewsProvider
from .patent_provider import PatentProvider
from .pubmed_provider import PubMedProvider
from .scholar_provider import ScholarProvider

PROVIDERS: Dict[str, Type[SearchProvider]] = {
    "ieee": IEEEProvider,
    "clinical": ClinicalTrialsProvider,
    "google_scholar": ScholarProvider,
    "patents": PatentProvider,
    "news": NewsProvider,
    "arxiv": ArxivProvider,
    "pubmed": PubMedProvider,
    "industry_news": IndustryNewsProvider,
}

__all__ = [
    "PROVIDERS",
    "ProviderResponse",
    "SearchProvider",
    "SearchResult",
]
