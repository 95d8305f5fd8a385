import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Any, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from kaiwa.db import Base, make_engine, make_session_factory
from kaiwa.gemini_client import get_gemini_client
from kaiwa.main import app
from kaiwa.settings import settings
from kaiwa.speech import TranscriptionResult, get_speech_service
from kaiwa.store import Store, get_store


class FakeGemini:
    """Stands in for GeminiClient: canned replies, records what it was asked."""

    def __init__(self) -> None:
        self.chat_reply = "かしこまりました。"
        self.generate_replies: List[str] = []
        self.prompts: List[str] = []
        self.chats: List[Dict[str, Any]] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.generate_replies.pop(0)

    async def chat(self, system_instruction: str, history: List[Dict[str, str]], message: str) -> str:
        self.chats.append({"system": system_instruction, "history": history, "message": message})
        return self.chat_reply


class FakeSpeech:
    def __init__(self) -> None:
        self.encodings: List[str] = []
        self.synthesized: List[str] = []

    def transcribe(self, audio: bytes, encoding: str = "WEBM_OPUS") -> TranscriptionResult:
        self.encodings.append(encoding)
        return TranscriptionResult(transcript="こんにちは", confidence=0.92)

    def synthesize(self, text: str, voice=None) -> bytes:
        self.synthesized.append(text)
        return b"ID3-fake-mp3"


@pytest.fixture()
def store(tmp_path) -> Store:
    """Store bound to a throwaway SQLite file."""
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield Store(make_session_factory(engine))
    engine.dispose()


@pytest.fixture()
def fake_gemini() -> FakeGemini:
    return FakeGemini()


@pytest.fixture()
def fake_speech() -> FakeSpeech:
    return FakeSpeech()


@pytest.fixture()
def client(store: Store, fake_gemini: FakeGemini, fake_speech: FakeSpeech, monkeypatch) -> Generator[TestClient, None, None]:
    monkeypatch.setattr(settings, "gemini_api_key", None)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_gemini_client] = lambda: fake_gemini
    app.dependency_overrides[get_speech_service] = lambda: fake_speech
    yield TestClient(app)
    app.dependency_overrides.clear()
