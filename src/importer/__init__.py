"""
Keyword import pipeline

CSV/sheet rows -> canonical rows -> ranking snapshot for one domain.
"""

from .csv_source import CsvTable, parse_csv
from .normalizer import (
    ImportValidationError,
    MissingColumnsError,
    EmptyImportError,
    CanonicalRow,
    NormalizedBatch,
    map_columns,
    normalize_rows,
    extract_slug,
    extract_domain,
    safe_parse_int,
)
from .reconcile import ImportResult, ReconciliationPlan, plan_reconciliation, reconcile_rankings
from .sheets import InvalidSheetUrlError, import_csv_url, import_spreadsheet, to_csv_export_url

__all__ = [
    "CsvTable",
    "parse_csv",
    "ImportValidationError",
    "MissingColumnsError",
    "EmptyImportError",
    "CanonicalRow",
    "NormalizedBatch",
    "map_columns",
    "normalize_rows",
    "extract_slug",
    "extract_domain",
    "safe_parse_int",
    "ImportResult",
    "ReconciliationPlan",
    "plan_reconciliation",
    "reconcile_rankings",
    "InvalidSheetUrlError",
    "import_csv_url",
    "import_spreadsheet",
    "to_csv_export_url",
]
