"""
API Endpoints for Settings

Stop words used by slug analysis.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.analysis import StopWordsService
from src.auth.dependencies import require_admin
from src.database.session import get_db

from api.schemas import CamelModel, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/settings",
    tags=["Settings"],
    dependencies=[Depends(require_admin)],
)


class StopWordsBody(CamelModel):
    """stopWords=null means the built-in list."""
    stop_words: Optional[List[str]] = None
    custom_words: List[str] = []


@router.get("/stop-words", response_model=StopWordsBody)
async def get_stop_words(db: Session = Depends(get_db)):
    """Stored stop-word configuration."""
    config = StopWordsService(db).get_config()
    return StopWordsBody(stop_words=config.stop_words, custom_words=config.custom_words)


@router.post("/stop-words", response_model=SuccessResponse)
async def save_stop_words(request: StopWordsBody, db: Session = Depends(get_db)):
    """Replace the stop-word configuration."""
    StopWordsService(db).save_stop_words(request.stop_words, request.custom_words)
    db.commit()
    return SuccessResponse()
