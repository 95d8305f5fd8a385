from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class Conversation(Base):
	__tablename__ = "conversations"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(128), nullable=False, index=True)
	scenario = Column(String(32), nullable=False)
	difficulty = Column(Integer, default=1, nullable=False)
	status = Column(String(16), default="active", nullable=False)
	messages_json = Column(Text, nullable=False, default="[]")  # JSON array of {role, content, timestamp}
	started_at = Column(DateTime, default=utcnow, nullable=False, index=True)
	ended_at = Column(DateTime, nullable=True)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Analysis(Base):
	__tablename__ = "analyses"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(128), nullable=False, index=True)
	# One analysis per completed conversation
	conversation_id = Column(String(64), nullable=False, index=True)
	score = Column(Integer, default=0, nullable=False)
	errors_json = Column(Text, nullable=False, default="[]")
	suggestions_json = Column(Text, nullable=False, default="[]")
	created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class Material(Base):
	__tablename__ = "materials"
	id = Column(String(64), primary_key=True)
	user_id = Column(String(128), nullable=False, index=True)
	analysis_id = Column(String(64), nullable=False)
	error_type = Column(String(32), nullable=False)
	grammar_point = Column(Text, nullable=False)
	explanation = Column(Text, nullable=False, default="")
	examples_json = Column(Text, nullable=False, default="[]")
	exercises_json = Column(Text, nullable=False, default="[]")
	created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
