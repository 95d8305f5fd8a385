from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..errors import AppError, success_response
from ..gemini_client import GeminiClient, get_gemini_client
from ..models import utcnow
from ..schemas import Exercise, LearningMaterial
from ..store import Store, get_store
from .. import tutor

router = APIRouter(prefix="/materials", tags=["materials"])

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
	# Either point at an error inside a stored analysis...
	analysis_id: Optional[str] = None
	error_index: Optional[int] = None
	# ...or pass the error directly (material is returned but not saved)
	error_type: Optional[str] = None
	original: Optional[str] = None
	correction: Optional[str] = None
	explanation: Optional[str] = None
	language: Optional[str] = None


@router.post("/generate", status_code=201)
async def generate(
	req: GenerateRequest,
	store: Store = Depends(get_store),
	client: GeminiClient = Depends(get_gemini_client),
):
	user_id = "anonymous"
	if req.analysis_id and req.error_index is not None:
		analysis = store.get_analysis(req.analysis_id)
		if analysis is None:
			raise AppError.not_found("Analysis not found")
		if req.error_index < 0 or req.error_index >= len(analysis.errors):
			raise AppError.not_found("Error not found at specified index")
		error = analysis.errors[req.error_index]
		error_type, original, correction, explanation = error.type, error.original, error.correction, error.explanation
		user_id = analysis.user_id
	elif req.error_type and req.original and req.correction:
		error_type, original, correction, explanation = req.error_type, req.original, req.correction, req.explanation or ""
	else:
		raise AppError.validation(
			"Either analysis_id+error_index or error details (error_type, original, correction) are required"
		)

	try:
		content = await tutor.generate_learning_material(
			client, error_type, original, correction, explanation, req.language or tutor.DEFAULT_LANGUAGE,
		)
		exercises = [
			Exercise(id=f"exercise-{i}", question=ex.question, options=ex.options, correct_index=ex.correct_index)
			for i, ex in enumerate(content.exercises)
		]
		if req.analysis_id:
			material = store.create_material(
				user_id=user_id,
				analysis_id=req.analysis_id,
				error_type=error_type,
				grammar_point=content.grammar_point,
				explanation=content.explanation,
				examples=content.examples,
				exercises=exercises,
			)
			return success_response({"material_id": material.id, "grammar_point": material.grammar_point})
	except Exception as exc:
		logger.exception("Error generating material")
		raise AppError.internal("Failed to generate material") from exc

	material = LearningMaterial(
		id=f"temp-{int(utcnow().timestamp() * 1000)}",
		user_id=user_id,
		error_type=error_type,
		grammar_point=content.grammar_point,
		explanation=content.explanation,
		examples=content.examples,
		exercises=exercises,
		created_at=utcnow(),
	)
	return success_response({"material_id": material.id, "material": material.model_dump(mode="json")})


@router.get("")
async def list_materials(
	user_id: Optional[str] = Query(default=None, alias="userId"),
	limit: int = Query(default=20, ge=1, le=100),
	store: Store = Depends(get_store),
):
	if not user_id:
		raise AppError.validation("userId is required")
	try:
		materials = store.fetch_recent_materials(user_id, limit)
	except Exception as exc:
		logger.exception("Error fetching materials for %s", user_id)
		raise AppError.internal("Failed to fetch materials") from exc
	return success_response({"materials": [m.model_dump(mode="json") for m in materials]})


@router.get("/{material_id}")
async def get_material(material_id: str, store: Store = Depends(get_store)):
	try:
		material = store.get_material(material_id)
	except Exception as exc:
		logger.exception("Error fetching material %s", material_id)
		raise AppError.internal("Failed to fetch material") from exc
	if material is None:
		raise AppError.not_found("Material not found")
	return success_response(material.model_dump(mode="json"))
