from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..errors import AppError, success_response
from ..store import Store, get_store

router = APIRouter(prefix="/analysis", tags=["analysis"])

logger = logging.getLogger(__name__)


@router.get("")
async def list_analyses(
	user_id: Optional[str] = Query(default=None, alias="userId"),
	limit: int = Query(default=20, ge=1, le=100),
	store: Store = Depends(get_store),
):
	if not user_id:
		raise AppError.validation("userId is required")
	try:
		analyses = store.fetch_recent_analyses(user_id, limit)
	except Exception as exc:
		logger.exception("Error fetching analyses for %s", user_id)
		raise AppError.internal("Failed to fetch analyses") from exc
	return success_response({"analyses": [a.model_dump(mode="json") for a in analyses]})


@router.get("/{analysis_id}")
async def get_analysis(analysis_id: str, store: Store = Depends(get_store)):
	try:
		analysis = store.get_analysis(analysis_id)
	except Exception as exc:
		logger.exception("Error fetching analysis %s", analysis_id)
		raise AppError.internal("Failed to fetch analysis") from exc
	if analysis is None:
		raise AppError.not_found("Analysis not found")
	return success_response(analysis.model_dump(mode="json"))
