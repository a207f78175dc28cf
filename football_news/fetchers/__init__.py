"""Source fetchers returning raw items."""

from .analysis import AnalysisSearchFetcher
from .base import FetchError, RequestPacer, SourceFetcher
from .breaking import BreakingNewsFetcher
from .rss import RSSFetcher

__all__ = [
    "AnalysisSearchFetcher",
    "BreakingNewsFetcher",
    "FetchError",
    "RequestPacer",
    "RSSFetcher",
    "SourceFetcher",
]
