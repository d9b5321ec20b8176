"""
Slug word-frequency analysis

Splits page slugs into words and ranks the words by how often they occur
across a domain's URLs.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.database.models import PageUrl
from src.database.repository import get_domain
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w\s]")
# Whole-token numeric literals: decimals, exponents and 0x/0b/0o integers
_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)(e[+-]?\d+)?$|^0(x[0-9a-f]+|b[01]+|o[0-7]+)$")

MIN_TOKEN_LENGTH = 2


@dataclass
class WordFrequency:
    word: str
    count: int = 0
    urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "count": self.count, "urls": list(self.urls)}


@dataclass
class SlugAnalysis:
    domain_name: str
    all_urls: List[str]
    analysis: List[WordFrequency]

    @property
    def total_urls(self) -> int:
        return len(self.all_urls)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domainName": self.domain_name,
            "totalUrls": self.total_urls,
            "allUrls": self.all_urls,
            "analysis": [w.to_dict() for w in self.analysis],
        }


def _is_number(token: str) -> bool:
    return bool(_NUMBER.match(token.lower()))


def tokenize_slug(slug: str, stop_words: Set[str] = frozenset()) -> List[str]:
    """
    Words of a slug that count towards the analysis.

    tokenize_slug("easy-chocolate-chip-cookies", {"easy"})
        -> ["chocolate", "chip", "cookies"]
    """
    text = _NON_WORD.sub("", (slug or "").lower().replace("-", " "))
    return [
        token for token in text.split()
        if len(token) >= MIN_TOKEN_LENGTH
        and not _is_number(token)
        and token not in stop_words
    ]


def analyze_slugs(
    entries: Iterable[Tuple[str, str]],
    stop_words: Set[str],
    limit: int = 100,
) -> List[WordFrequency]:
    """
    Rank words across (slug, url) pairs.

    Every occurrence counts; each word keeps the distinct URLs it came
    from. Sorted by count descending, ties in first-seen order.
    """
    words: Dict[str, WordFrequency] = {}

    for slug, url in entries:
        if not slug:
            continue
        for token in tokenize_slug(slug, stop_words):
            freq = words.get(token)
            if freq is None:
                freq = words[token] = WordFrequency(word=token)
            freq.count += 1
            if url not in freq.urls:
                freq.urls.append(url)

    ranked = sorted(words.values(), key=lambda w: w.count, reverse=True)
    return ranked[:limit]


def analyze_domain_slugs(db: Session, domain_id: int, stop_words: Set[str]) -> SlugAnalysis:
    """
    Slug analysis for one domain's page URLs.

    Raises:
        DomainNotFoundError: unknown domain
    """
    domain = get_domain(db, domain_id)
    rows = db.execute(
        select(PageUrl.slug, PageUrl.url)
        .where(PageUrl.domain_id == domain_id)
        .order_by(PageUrl.id)
    ).all()

    analysis = analyze_slugs(
        ((slug, url) for slug, url in rows),
        stop_words,
        limit=get_settings().SLUG_ANALYSIS_LIMIT,
    )
    logger.info(f"Slug analysis for {domain.domain_name}: {len(rows)} URLs, {len(analysis)} words")

    return SlugAnalysis(
        domain_name=domain.domain_name,
        all_urls=[url for _, url in rows],
        analysis=analysis,
    )
