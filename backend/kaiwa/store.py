"""
Persistence for conversations, analyses and learning materials.

``Store`` is constructed with a SQLAlchemy session factory and opens a fresh
session per operation, so one instance can be shared between threads (the
recommendation endpoint fetches analyses and conversations in parallel).
Records go in and come out as the pydantic models from ``schemas``; list
fields are kept as JSON text columns.
"""

from __future__ import annotations
import json
import uuid
from datetime import datetime, timezone
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import sessionmaker

from .db import SessionLocal
from .models import Analysis, Conversation, Material, utcnow
from .schemas import (
	AnalysisRecord,
	ConversationError,
	ConversationRecord,
	Exercise,
	LearningMaterial,
	Message,
)


def _new_id() -> str:
	return uuid.uuid4().hex


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
	# SQLite hands back naive datetimes; everything is stored in UTC
	if value is not None and value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value


def _dump(items: List[Any]) -> str:
	return json.dumps([i.model_dump(mode="json") if hasattr(i, "model_dump") else i for i in items], ensure_ascii=False)


def _to_conversation(row: Conversation) -> ConversationRecord:
	return ConversationRecord(
		id=row.id,
		user_id=row.user_id,
		scenario=row.scenario,
		difficulty=row.difficulty,
		messages=[Message(**m) for m in json.loads(row.messages_json or "[]")],
		status=row.status,
		started_at=_as_utc(row.started_at),
		ended_at=_as_utc(row.ended_at),
	)


def _to_analysis(row: Analysis) -> AnalysisRecord:
	return AnalysisRecord(
		id=row.id,
		user_id=row.user_id,
		conversation_id=row.conversation_id,
		score=row.score,
		errors=[ConversationError(**e) for e in json.loads(row.errors_json or "[]")],
		suggestions=json.loads(row.suggestions_json or "[]"),
		created_at=_as_utc(row.created_at),
	)


def _to_material(row: Material) -> LearningMaterial:
	return LearningMaterial(
		id=row.id,
		user_id=row.user_id,
		analysis_id=row.analysis_id,
		error_type=row.error_type,
		grammar_point=row.grammar_point,
		explanation=row.explanation,
		examples=json.loads(row.examples_json or "[]"),
		exercises=[Exercise(**e) for e in json.loads(row.exercises_json or "[]")],
		created_at=_as_utc(row.created_at),
	)


class Store:
	def __init__(self, session_factory: sessionmaker) -> None:
		self._session_factory = session_factory

	# ---- conversations ----

	def create_conversation(
		self,
		*,
		user_id: str,
		scenario: str,
		difficulty: int,
		messages: List[Message],
		status: str = "active",
		started_at: Optional[datetime] = None,
	) -> ConversationRecord:
		row = Conversation(
			id=_new_id(),
			user_id=user_id,
			scenario=scenario,
			difficulty=difficulty,
			status=status,
			messages_json=_dump(messages),
			started_at=started_at or utcnow(),
		)
		row.updated_at = row.started_at
		with self._session_factory() as db:
			db.add(row)
			db.commit()
			return _to_conversation(row)

	def get_conversation(self, conversation_id: str) -> Optional[ConversationRecord]:
		with self._session_factory() as db:
			row = db.get(Conversation, conversation_id)
			return _to_conversation(row) if row else None

	def update_conversation(
		self,
		conversation_id: str,
		*,
		messages: Optional[List[Message]] = None,
		status: Optional[str] = None,
		ended_at: Optional[datetime] = None,
	) -> Optional[ConversationRecord]:
		with self._session_factory() as db:
			row = db.get(Conversation, conversation_id)
			if row is None:
				return None
			if messages is not None:
				row.messages_json = _dump(messages)
			if status is not None:
				row.status = status
			if ended_at is not None:
				row.ended_at = ended_at
			row.updated_at = utcnow()
			db.commit()
			return _to_conversation(row)

	def append_messages(self, conversation_id: str, messages: List[Message]) -> Optional[ConversationRecord]:
		"""Append to the stored transcript inside a single transaction."""
		with self._session_factory() as db:
			row = db.get(Conversation, conversation_id)
			if row is None:
				return None
			current = json.loads(row.messages_json or "[]")
			current.extend(m.model_dump(mode="json") for m in messages)
			row.messages_json = json.dumps(current, ensure_ascii=False)
			row.updated_at = utcnow()
			db.commit()
			return _to_conversation(row)

	def fetch_recent_conversations(self, user_id: str, limit: int = 10) -> List[ConversationRecord]:
		stmt = (
			select(Conversation)
			.where(Conversation.user_id == user_id)
			.order_by(Conversation.started_at.desc())
			.limit(limit)
		)
		with self._session_factory() as db:
			return [_to_conversation(row) for row in db.scalars(stmt)]

	def abandon_conversations_idle_since(self, threshold: datetime) -> int:
		stmt = (
			update(Conversation)
			.where(Conversation.status == "active", Conversation.updated_at < threshold)
			.values(status="abandoned", ended_at=utcnow(), updated_at=utcnow())
		)
		with self._session_factory() as db:
			res = db.execute(stmt)
			db.commit()
			return res.rowcount or 0

	# ---- analyses ----

	def create_analysis(
		self,
		*,
		user_id: str,
		conversation_id: str,
		score: int,
		errors: List[ConversationError],
		suggestions: List[str],
		created_at: Optional[datetime] = None,
	) -> AnalysisRecord:
		row = Analysis(
			id=_new_id(),
			user_id=user_id,
			conversation_id=conversation_id,
			score=score,
			errors_json=_dump(errors),
			suggestions_json=json.dumps(suggestions, ensure_ascii=False),
			created_at=created_at or utcnow(),
		)
		with self._session_factory() as db:
			db.add(row)
			db.commit()
			return _to_analysis(row)

	def get_analysis(self, analysis_id: str) -> Optional[AnalysisRecord]:
		with self._session_factory() as db:
			row = db.get(Analysis, analysis_id)
			return _to_analysis(row) if row else None

	def fetch_recent_analyses(self, user_id: str, limit: int = 10) -> List[AnalysisRecord]:
		stmt = (
			select(Analysis)
			.where(Analysis.user_id == user_id)
			.order_by(Analysis.created_at.desc())
			.limit(limit)
		)
		with self._session_factory() as db:
			return [_to_analysis(row) for row in db.scalars(stmt)]

	# ---- learning materials ----

	def create_material(
		self,
		*,
		user_id: str,
		analysis_id: str,
		error_type: str,
		grammar_point: str,
		explanation: str,
		examples: List[str],
		exercises: List[Exercise],
	) -> LearningMaterial:
		row = Material(
			id=_new_id(),
			user_id=user_id,
			analysis_id=analysis_id,
			error_type=error_type,
			grammar_point=grammar_point,
			explanation=explanation,
			examples_json=json.dumps(examples, ensure_ascii=False),
			exercises_json=_dump(exercises),
			created_at=utcnow(),
		)
		with self._session_factory() as db:
			db.add(row)
			db.commit()
			return _to_material(row)

	def get_material(self, material_id: str) -> Optional[LearningMaterial]:
		with self._session_factory() as db:
			row = db.get(Material, material_id)
			return _to_material(row) if row else None

	def fetch_recent_materials(self, user_id: str, limit: int = 20) -> List[LearningMaterial]:
		stmt = (
			select(Material)
			.where(Material.user_id == user_id)
			.order_by(Material.created_at.desc())
			.limit(limit)
		)
		with self._session_factory() as db:
			return [_to_material(row) for row in db.scalars(stmt)]


def get_store() -> Store:
	return Store(SessionLocal)
