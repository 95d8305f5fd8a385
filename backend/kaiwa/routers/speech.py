from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from google.api_core.exceptions import GoogleAPIError
from pydantic import BaseModel

from ..errors import AppError, success_response
from ..speech import (
	MAX_SYNTHESIS_CHARS,
	SpeechService,
	VoiceOptions,
	encoding_for_content_type,
	get_speech_service,
	speech_error,
)

router = APIRouter(prefix="/speech", tags=["speech"])

logger = logging.getLogger(__name__)


class SynthesizeRequest(BaseModel):
	text: str
	voice: Optional[VoiceOptions] = None


@router.post("/transcribe")
async def transcribe(
	audio: Optional[UploadFile] = File(default=None),
	service: SpeechService = Depends(get_speech_service),
):
	if audio is None:
		raise AppError.validation("Audio file is required")
	content = await audio.read()
	if not content:
		raise AppError.validation("Audio file is empty")
	encoding = encoding_for_content_type(audio.content_type)
	try:
		result = await run_in_threadpool(service.transcribe, content, encoding)
	except GoogleAPIError as err:
		raise speech_error(err) from err
	except Exception as exc:
		logger.exception("Error transcribing audio")
		raise AppError.internal("Failed to transcribe audio") from exc
	return success_response(result.model_dump())


@router.post("/synthesize")
async def synthesize(req: SynthesizeRequest, service: SpeechService = Depends(get_speech_service)):
	text = (req.text or "").strip()
	if not text:
		raise AppError.validation("Text is required")
	if len(req.text) > MAX_SYNTHESIS_CHARS:
		raise AppError.validation(f"Text exceeds maximum length of {MAX_SYNTHESIS_CHARS} characters")
	try:
		audio = await run_in_threadpool(service.synthesize, req.text, req.voice)
	except GoogleAPIError as err:
		raise speech_error(err) from err
	except Exception as exc:
		logger.exception("Error synthesizing speech")
		raise AppError.internal("Failed to synthesize speech") from exc
	return Response(content=audio, media_type="audio/mpeg")
