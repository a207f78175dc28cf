"""Typed models used across the application."""

from .source import FeedSource, SourceKind, SOURCE_KINDS
from .article import Article, RawItem, CATEGORIES
from .quota import QuotaRecord

__all__ = [
    "FeedSource",
    "SourceKind",
    "SOURCE_KINDS",
    "Article",
    "RawItem",
    "CATEGORIES",
    "QuotaRecord",
]
