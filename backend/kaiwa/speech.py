from __future__ import annotations
import logging
from typing import Any, Literal, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import speech
from google.cloud import texttospeech
from pydantic import BaseModel

from .errors import AppError
from .settings import settings


logger = logging.getLogger(__name__)

MAX_SYNTHESIS_CHARS = 5000


class TranscriptionResult(BaseModel):
	transcript: str
	confidence: float


class VoiceOptions(BaseModel):
	name: Optional[str] = None
	gender: Optional[Literal["MALE", "FEMALE", "NEUTRAL"]] = None
	language_code: Optional[str] = None


def encoding_for_content_type(content_type: Optional[str]) -> str:
	"""Pick a Speech-to-Text encoding name from an upload's MIME type (browser recordings default to WebM/Opus)."""
	ct = (content_type or "").lower()
	if "ogg" in ct:
		return "OGG_OPUS"
	if "flac" in ct:
		return "FLAC"
	if "wav" in ct or "linear16" in ct:
		return "LINEAR16"
	return "WEBM_OPUS"


class SpeechService:
	"""Google Cloud Speech-to-Text and Text-to-Speech for Japanese practice audio."""

	def __init__(self, speech_client: Any = None, tts_client: Any = None) -> None:
		self._speech_client = speech_client
		self._tts_client = tts_client

	def transcribe(self, audio: bytes, encoding: str = "WEBM_OPUS") -> TranscriptionResult:
		if self._speech_client is None:
			self._speech_client = speech.SpeechClient()
		config = speech.RecognitionConfig(
			encoding=speech.RecognitionConfig.AudioEncoding[encoding],
			sample_rate_hertz=settings.speech_sample_rate_hertz,
			language_code=settings.speech_language_code,
			enable_automatic_punctuation=True,
			model="latest_long",
		)
		response = self._speech_client.recognize(config=config, audio=speech.RecognitionAudio(content=audio))
		results = [r for r in response.results if r.alternatives]
		if not results:
			return TranscriptionResult(transcript="", confidence=0.0)
		transcript = " ".join(r.alternatives[0].transcript for r in results)
		confidence = sum(r.alternatives[0].confidence for r in results) / len(results)
		return TranscriptionResult(transcript=transcript, confidence=confidence)

	def synthesize(self, text: str, voice: Optional[VoiceOptions] = None) -> bytes:
		"""Return MP3 audio for ``text``."""
		if self._tts_client is None:
			self._tts_client = texttospeech.TextToSpeechClient()
		voice = voice or VoiceOptions()
		params = texttospeech.VoiceSelectionParams(
			language_code=voice.language_code or settings.speech_language_code,
			name=voice.name or settings.tts_voice_name,
			ssml_gender=texttospeech.SsmlVoiceGender[voice.gender or "FEMALE"],
		)
		audio_config = texttospeech.AudioConfig(
			audio_encoding=texttospeech.AudioEncoding.MP3,
			speaking_rate=settings.tts_speaking_rate,
			pitch=0,
		)
		response = self._tts_client.synthesize_speech(
			input=texttospeech.SynthesisInput(text=text),
			voice=params,
			audio_config=audio_config,
		)
		if not response.audio_content:
			raise RuntimeError("No audio content in response")
		return response.audio_content


def get_speech_service() -> SpeechService:
	return SpeechService()


def speech_error(err: GoogleAPIError) -> AppError:
	logger.error("Google Cloud speech API error: %s", err)
	return AppError.service_unavailable("Speech service unavailable")
