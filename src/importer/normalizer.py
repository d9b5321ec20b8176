"""
Row Normalizer

Maps spreadsheet/CSV rows keyed by arbitrary column headers onto the
canonical ranking record:

    {keyword, link, position, volume, change?, pin?}

Header matching is driven by the declarative COLUMN_RULES table and is
resolved once per import. Numeric parsing never raises; bad values fall
back to defaults and bad rows are counted as skipped.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class ImportValidationError(ValueError):
    """Batch-level problem that rejects the whole import."""


class MissingColumnsError(ImportValidationError):
    """Required columns could not be resolved from the header row."""
    def __init__(self, missing: Sequence[str], found: Sequence[str]):
        self.missing = list(missing)
        self.found = list(found)
        super().__init__(
            f"Missing required columns: {', '.join(self.missing)}. "
            f"Found: {', '.join(self.found)}"
        )


class EmptyImportError(ImportValidationError):
    """No usable rows after normalization."""
    def __init__(self, skipped: int = 0):
        self.skipped = skipped
        super().__init__(f"No valid rows found ({skipped} rows skipped)")


# =============================================================================
# COLUMN RULES
# =============================================================================

KEYWORD = "Keyword"
LINK = "Link"
POSITION = "Position"
VOLUME = "Volume"
CHANGE = "Change"
PIN = "Pin"

REQUIRED_FIELDS = (KEYWORD, LINK)

EXACT = "exact"
CONTAINS = "contains"


@dataclass(frozen=True)
class ColumnRule:
    """Header pattern(s) that resolve to one canonical field."""
    field: str
    patterns: Tuple[str, ...]
    match: str = EXACT
    aliases: Tuple[str, ...] = ()

    def score(self, header: str) -> int:
        """
        How well a lower-cased, trimmed header matches this rule.

        2 = equal to a pattern or alias, 1 = substring hit, 0 = no match.
        """
        if header in self.patterns or header in self.aliases:
            return 2
        if self.match == CONTAINS and any(p in header for p in self.patterns):
            return 1
        return 0


COLUMN_RULES: Tuple[ColumnRule, ...] = (
    ColumnRule(KEYWORD, ("keyword",), CONTAINS, aliases=("search term",)),
    ColumnRule(VOLUME, ("volume",), EXACT),
    ColumnRule(LINK, ("link", "url"), EXACT),
    ColumnRule(PIN, ("pin", "pinterest"), EXACT),
    ColumnRule(POSITION, ("position",), CONTAINS),
    ColumnRule(CHANGE, ("change",), EXACT),
)


@dataclass
class ColumnMapping:
    """Canonical field -> source header, resolved for one import."""
    columns: Dict[str, str]
    headers: List[str]

    @property
    def missing(self) -> List[str]:
        return [f for f in REQUIRED_FIELDS if f not in self.columns]

    def has(self, field_name: str) -> bool:
        return field_name in self.columns

    def value(self, row: Mapping[str, Optional[str]], field_name: str) -> Optional[str]:
        header = self.columns.get(field_name)
        if header is None:
            return None
        return row.get(header)

    def require(self) -> "ColumnMapping":
        """Raise MissingColumnsError unless Keyword and Link resolved."""
        if self.missing:
            raise MissingColumnsError(self.missing, self.headers)
        return self


def map_columns(headers: Iterable[str], rules: Sequence[ColumnRule] = COLUMN_RULES) -> ColumnMapping:
    """
    Resolve canonical fields from a header row.

    A header equal to a pattern beats a substring hit; among equal scores
    the first header wins. One header may satisfy several fields.
    """
    headers = [h for h in headers if h is not None]
    columns: Dict[str, str] = {}
    best: Dict[str, int] = {}

    for header in headers:
        lower = header.strip().lower()
        for rule in rules:
            score = rule.score(lower)
            if score > best.get(rule.field, 0):
                best[rule.field] = score
                columns[rule.field] = header

    return ColumnMapping(columns=columns, headers=headers)


# =============================================================================
# VALUE PARSING
# =============================================================================

_LEADING_INT = re.compile(r"^[+-]?\d+")


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip().replace(",", "")
    if text == "" or text.lower() == "unknown":
        return None
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(0))


def safe_parse_int(value: Optional[str], default: int = 0) -> int:
    """
    Parse a non-negative count ("1,200" -> 1200). Never raises.

    Empty, "unknown", unparsable or negative input gives `default`.
    """
    number = _parse_int(value)
    if number is None or number < 0:
        return default
    return number


def safe_parse_optional_int(value: Optional[str]) -> Optional[int]:
    """Parse a signed integer, or None when absent/unparsable."""
    return _parse_int(value)


def extract_slug(url: str) -> str:
    """
    Path of `url` without leading/trailing slashes.

    extract_slug("https://x.com/a/b/") -> "a/b"
    Homepages and unparsable input -> "home"
    """
    try:
        parsed = urlparse((url or "").strip())
    except ValueError:
        return "home"
    if not parsed.scheme or not parsed.netloc:
        return "home"
    return parsed.path.strip("/") or "home"


def extract_domain(url: str) -> Optional[str]:
    """Hostname of `url` without a leading 'www.', or None."""
    try:
        hostname = urlparse((url or "").strip()).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname or None


# =============================================================================
# ROW NORMALIZATION
# =============================================================================

@dataclass
class CanonicalRow:
    """One ranking row after normalization."""
    keyword: str
    link: str
    position: int = 0
    volume: int = 0
    change: Optional[int] = None
    pin: Optional[str] = None


@dataclass
class NormalizedBatch:
    """Usable rows plus the count of rows dropped."""
    rows: List[CanonicalRow] = field(default_factory=list)
    skipped: int = 0
    mapping: Optional[ColumnMapping] = None

    @property
    def total(self) -> int:
        return len(self.rows) + self.skipped


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def normalize_row(row: Mapping[str, Optional[str]], mapping: ColumnMapping) -> Optional[CanonicalRow]:
    """Canonical record for `row`, or None if Keyword or Link is empty."""
    keyword = _clean(mapping.value(row, KEYWORD))
    link = _clean(mapping.value(row, LINK))
    if not keyword or not link:
        return None

    return CanonicalRow(
        keyword=keyword,
        link=link,
        position=safe_parse_int(mapping.value(row, POSITION)),
        volume=safe_parse_int(mapping.value(row, VOLUME)),
        change=safe_parse_optional_int(mapping.value(row, CHANGE)) if mapping.has(CHANGE) else None,
        pin=_clean(mapping.value(row, PIN)) or None,
    )


def normalize_rows(
    rows: Iterable[Mapping[str, Optional[str]]],
    headers: Sequence[str],
) -> NormalizedBatch:
    """
    Normalize a whole sheet.

    Raises:
        MissingColumnsError: if Keyword or Link cannot be resolved from headers
    """
    mapping = map_columns(headers).require()
    batch = NormalizedBatch(mapping=mapping)

    for row in rows:
        canonical = normalize_row(row, mapping)
        if canonical is None:
            batch.skipped += 1
            continue
        batch.rows.append(canonical)

    logger.debug(f"Normalized {len(batch.rows)} rows, skipped {batch.skipped}")
    return batch
