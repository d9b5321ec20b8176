"""
CSV reader for keyword exports

Turns an uploaded file or a fetched spreadsheet export into a header list
plus dict rows. Blank lines are skipped; cells beyond the header row are
ignored.
"""

import csv
import io
from dataclasses import dataclass, field
from typing import Dict, List, Union


@dataclass
class CsvTable:
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def decode_csv(data: Union[bytes, str]) -> str:
    """Decode upload bytes as UTF-8, dropping a BOM if present."""
    if isinstance(data, bytes):
        return data.decode("utf-8-sig", errors="replace")
    return data.lstrip("\ufeff")


def parse_csv(data: Union[bytes, str]) -> CsvTable:
    """Parse CSV text with a header row."""
    reader = csv.DictReader(io.StringIO(decode_csv(data), newline=""))
    headers = [h.strip() for h in (reader.fieldnames or [])]
    table = CsvTable(headers=headers)

    for raw in reader:
        row = {
            header.strip(): (value or "")
            for header, value in raw.items()
            if header is not None and not isinstance(value, list)
        }
        if not any(v.strip() for v in row.values()):
            continue
        table.rows.append(row)

    return table
