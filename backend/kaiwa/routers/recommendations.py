from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..errors import AppError, success_response
from ..recommendations import get_recommendations_for_user
from ..settings import settings
from ..store import Store, get_store

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

logger = logging.getLogger(__name__)


@router.get("")
async def get_recommendations(
	user_id: Optional[str] = Query(default=None, alias="userId"),
	store: Store = Depends(get_store),
):
	if not user_id:
		raise AppError.validation("userId is required")
	try:
		bundle = await get_recommendations_for_user(user_id, store, limit=settings.recommendation_history_limit)
	except Exception as exc:
		logger.exception("Error fetching recommendations for %s", user_id)
		raise AppError.internal("Failed to fetch recommendations") from exc
	return success_response(bundle.model_dump(mode="json"))
