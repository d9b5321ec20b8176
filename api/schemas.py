"""
Shared API models

Request and response bodies use camelCase keys on the wire and
snake_case attributes in Python.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UrlRequest(CamelModel):
    """Body carrying a single remote URL."""
    url: str = Field(..., min_length=1)


class SuccessResponse(CamelModel):
    success: bool = True


class ImportResponse(CamelModel):
    """Outcome of a keyword import for one domain."""
    success: bool = True
    count: int
    skipped: int
    urls_created: int


class DomainResponse(CamelModel):
    """Single domain response."""
    id: int
    domain_name: str
    pinclicks_account_url: Optional[str] = None
    monthly_views: int = 0
    total_keywords: int = 0
    total_recipe_urls: int = 0
    status: str
    last_sitemap_import: Optional[datetime] = None
    last_keywords_import: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ImportLogResponse(CamelModel):
    id: int
    domain_name: Optional[str] = None
    import_type: str
    rows_imported: int
    rows_skipped: Optional[int] = None
    file_name: Optional[str] = None
    imported_at: Optional[datetime] = None
    warnings: Optional[List[dict]] = None
