"""
Stop-word configuration

Words excluded from slug word-frequency analysis. The effective set is the
stored list (or the built-in defaults when none is stored) plus the user's
custom words, saved together as one `stop_words` setting:

    {"stopWords": [...] | null, "customWords": [...]}
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from src.database.repository import get_setting, save_setting

logger = logging.getLogger(__name__)

STOP_WORDS_KEY = "stop_words"

DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset({
    # Function words
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has",
    "in", "is", "it", "of", "on", "or", "that", "the", "to", "with", "was",
    "will",
    # Recipe-title filler
    "recipe", "recipes", "easy", "best", "simple", "quick", "perfect",
    "homemade", "delicious", "tasty", "amazing", "ultimate", "classic",
})


def _clean_words(words: Optional[Iterable[Any]]) -> List[str]:
    """Lower-cased, trimmed, de-duplicated words in input order."""
    if not words:
        return []
    cleaned = (str(w).strip().lower() for w in words if w is not None)
    return list(dict.fromkeys(w for w in cleaned if w))


@dataclass
class StopWordsConfig:
    """Stored configuration. stop_words=None means 'use the defaults'."""
    stop_words: Optional[List[str]] = None
    custom_words: List[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: Optional[Dict[str, Any]]) -> "StopWordsConfig":
        if not isinstance(value, dict):
            return cls()
        stop_words = value.get("stopWords")
        return cls(
            stop_words=_clean_words(stop_words) if stop_words is not None else None,
            custom_words=_clean_words(value.get("customWords")),
        )

    def to_value(self) -> Dict[str, Any]:
        return {"stopWords": self.stop_words, "customWords": self.custom_words}

    def effective(self) -> Set[str]:
        base = set(self.stop_words) if self.stop_words is not None else set(DEFAULT_STOP_WORDS)
        return base | set(self.custom_words)


class StopWordsService:
    """
    Reads and writes the shared stop-word configuration.

    Usage:
        service = StopWordsService(db)
        words = service.get_stop_words()
        service.save_stop_words(None, ["keto"])
    """

    def __init__(self, db: Session):
        self.db = db

    def get_config(self) -> StopWordsConfig:
        return StopWordsConfig.from_value(get_setting(self.db, STOP_WORDS_KEY))

    def get_stop_words(self) -> Set[str]:
        return self.get_config().effective()

    def save_stop_words(
        self,
        stop_words: Optional[Iterable[str]],
        custom_words: Optional[Iterable[str]] = None,
    ) -> StopWordsConfig:
        """Replace the stored configuration. The caller commits."""
        config = StopWordsConfig(
            stop_words=_clean_words(stop_words) if stop_words is not None else None,
            custom_words=_clean_words(custom_words),
        )
        save_setting(self.db, STOP_WORDS_KEY, config.to_value())
        logger.info(
            f"Saved stop words: "
            f"{'defaults' if config.stop_words is None else len(config.stop_words)} base, "
            f"{len(config.custom_words)} custom"
        )
        return config
