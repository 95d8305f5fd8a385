from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	vertex_region: str = Field(default="asia-northeast1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="google/gemini-2.5-flash", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Kaiwa Practice", validation_alias="OPENROUTER_TITLE")

	# Speech (Google Cloud Speech-to-Text / Text-to-Speech)
	speech_language_code: str = Field(default="ja-JP", validation_alias="SPEECH_LANGUAGE_CODE")
	speech_sample_rate_hertz: int = Field(default=48000, validation_alias="SPEECH_SAMPLE_RATE_HERTZ")
	tts_voice_name: str = Field(default="ja-JP-Neural2-B", validation_alias="TTS_VOICE_NAME")
	# Slightly slower than normal speech for learners
	tts_speaking_rate: float = Field(default=0.9, validation_alias="TTS_SPEAKING_RATE")

	# Recommendations look at this many recent analyses / conversations
	recommendation_history_limit: int = Field(default=10, validation_alias="RECOMMENDATION_HISTORY_LIMIT")
	# Active conversations idle for longer than this are marked abandoned
	stale_conversation_hours: int = Field(default=24, validation_alias="STALE_CONVERSATION_HOURS")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
