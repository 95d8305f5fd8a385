"""
Conversation practice endpoints.

- POST /conversation/start: open a session in a scenario at a difficulty
- POST /conversation/message: send a user turn and get the partner's reply
- POST /conversation/end: close the session and analyse the user's Japanese
"""

from __future__ import annotations
import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..errors import AppError, success_response
from ..gemini_client import GeminiClient, get_gemini_client
from ..models import utcnow
from ..scenarios import SCENARIO_CONFIGS, system_prompt_for
from ..schemas import Message
from ..store import Store, get_store
from .. import tutor

router = APIRouter(prefix="/conversation", tags=["conversation"])

logger = logging.getLogger(__name__)


class StartRequest(BaseModel):
	scenario: str
	difficulty: int
	user_id: Optional[str] = None


class MessageRequest(BaseModel):
	session_id: str
	content: str


class EndRequest(BaseModel):
	session_id: str
	# Language for explanations and suggestions (zh, ja, en)
	locale: Optional[str] = None


@router.post("/start", status_code=201)
async def start(req: StartRequest, store: Store = Depends(get_store)):
	config = SCENARIO_CONFIGS.get(req.scenario)
	if config is None:
		raise AppError.validation("Invalid scenario")
	if req.difficulty < 1 or req.difficulty > 5:
		raise AppError.validation("Difficulty must be between 1 and 5")
	try:
		opening = Message(role="assistant", content=config.initial_message, timestamp=utcnow())
		session = store.create_conversation(
			user_id=req.user_id or "anonymous",
			scenario=req.scenario,
			difficulty=req.difficulty,
			messages=[opening],
		)
	except Exception as exc:
		logger.exception("Error starting conversation")
		raise AppError.internal("Failed to start conversation") from exc
	return success_response({
		"session_id": session.id,
		"initial_message": opening.model_dump(mode="json"),
		"suggested_responses": config.suggested_responses,
	})


@router.post("/message")
async def message(
	req: MessageRequest,
	store: Store = Depends(get_store),
	client: GeminiClient = Depends(get_gemini_client),
):
	content = (req.content or "").strip()
	if not content:
		raise AppError.validation("Message content is required")
	conversation = store.get_conversation(req.session_id)
	if conversation is None:
		raise AppError.not_found("Conversation not found")
	if conversation.status != "active":
		raise AppError.validation("Conversation is not active")
	try:
		system_prompt = system_prompt_for(conversation.scenario, conversation.difficulty)
		reply = await tutor.generate_chat_response(client, system_prompt, conversation.messages, content)
		now = utcnow()
		user_message = Message(role="user", content=content, timestamp=now)
		assistant_message = Message(role="assistant", content=reply, timestamp=now + timedelta(milliseconds=1))
		store.append_messages(conversation.id, [user_message, assistant_message])
	except Exception as exc:
		logger.exception("Error sending message in %s", req.session_id)
		raise AppError.internal("Failed to send message") from exc
	return success_response({
		"user_message": user_message.model_dump(mode="json"),
		"assistant_message": assistant_message.model_dump(mode="json"),
	})


@router.post("/end")
async def end(
	req: EndRequest,
	store: Store = Depends(get_store),
	client: GeminiClient = Depends(get_gemini_client),
):
	conversation = store.get_conversation(req.session_id)
	if conversation is None:
		raise AppError.not_found("Conversation not found")
	if conversation.status != "active":
		raise AppError.validation("Conversation is already ended")
	try:
		store.update_conversation(conversation.id, status="completed", ended_at=utcnow())
		if not any(m.role == "user" for m in conversation.messages):
			return success_response({
				"session_id": conversation.id,
				"analysis_id": None,
				"message": "No user messages to analyze",
			})
		result = await tutor.analyze_conversation(
			client,
			conversation.messages,
			conversation.scenario,
			conversation.difficulty,
			req.locale or tutor.DEFAULT_LANGUAGE,
		)
		analysis = store.create_analysis(
			user_id=conversation.user_id,
			conversation_id=conversation.id,
			score=result.score,
			errors=result.errors,
			suggestions=result.suggestions,
		)
	except Exception as exc:
		logger.exception("Error ending conversation %s", req.session_id)
		raise AppError.internal("Failed to end conversation") from exc
	return success_response({
		"session_id": conversation.id,
		"analysis_id": analysis.id,
		"score": analysis.score,
		"error_count": len(analysis.errors),
	})
