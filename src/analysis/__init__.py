"""
Dashboard analytics: slug word frequency, stop words, keyword reports.
"""

from .stop_words import DEFAULT_STOP_WORDS, STOP_WORDS_KEY, StopWordsConfig, StopWordsService
from .slugs import SlugAnalysis, WordFrequency, analyze_domain_slugs, analyze_slugs, tokenize_slug
from .reports import keyword_analysis, keyword_coverage, keyword_rankings

__all__ = [
    "DEFAULT_STOP_WORDS",
    "STOP_WORDS_KEY",
    "StopWordsConfig",
    "StopWordsService",
    "SlugAnalysis",
    "WordFrequency",
    "analyze_domain_slugs",
    "analyze_slugs",
    "tokenize_slug",
    "keyword_analysis",
    "keyword_coverage",
    "keyword_rankings",
]
