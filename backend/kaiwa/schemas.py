"""Domain records shared by the store, the tutor and the recommendation engine."""

from __future__ import annotations
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


ErrorType = Literal["grammar", "vocabulary", "wordOrder", "politeness"]
Scenario = Literal[
	"restaurant",
	"shopping",
	"introduction",
	"station",
	"hotel",
	"hospital",
	"bank",
	"convenience",
	"directions",
]
ConversationStatus = Literal["active", "completed", "abandoned"]
MessageRole = Literal["user", "assistant"]
Priority = Literal["high", "medium", "low"]

# Canonical orderings
ERROR_TYPES: List[str] = ["grammar", "vocabulary", "wordOrder", "politeness"]
SCENARIOS: List[str] = [
	"restaurant",
	"shopping",
	"introduction",
	"station",
	"hotel",
	"hospital",
	"bank",
	"convenience",
	"directions",
]


class Message(BaseModel):
	role: MessageRole
	content: str
	timestamp: datetime


class ConversationError(BaseModel):
	id: Optional[str] = None
	# Free string: model output may carry categories outside ERROR_TYPES
	type: str
	original: str = ""
	correction: str = ""
	explanation: str = ""


class AnalysisRecord(BaseModel):
	id: str
	user_id: str = "anonymous"
	conversation_id: str
	score: int = Field(ge=0, le=100)
	errors: List[ConversationError] = Field(default_factory=list)
	suggestions: List[str] = Field(default_factory=list)
	created_at: datetime


class ConversationRecord(BaseModel):
	id: str
	user_id: str = "anonymous"
	scenario: Scenario
	difficulty: int = Field(ge=1, le=5)
	messages: List[Message] = Field(default_factory=list)
	status: ConversationStatus
	started_at: datetime
	ended_at: Optional[datetime] = None


class Exercise(BaseModel):
	id: str
	question: str
	options: List[str]
	correct_index: int


class LearningMaterial(BaseModel):
	id: str
	user_id: str
	analysis_id: Optional[str] = None
	error_type: str
	grammar_point: str
	explanation: str
	examples: List[str] = Field(default_factory=list)
	exercises: List[Exercise] = Field(default_factory=list)
	created_at: datetime


class Recommendation(BaseModel):
	id: str
	scenario: Scenario
	difficulty: int
	reason: str
	reason_key: str
	priority: Priority
	target_weak_points: List[ErrorType] = Field(default_factory=list)


class ErrorStat(BaseModel):
	type: ErrorType
	count: int
	percentage: int


class ScoreEntry(BaseModel):
	session_id: str
	score: int
	scenario: Scenario
	date: datetime


class RecommendationStats(BaseModel):
	total_sessions: int
	average_score: int
	weak_points: List[ErrorStat]
	strong_points: List[ErrorStat]
	recent_scores: List[ScoreEntry]


class RecentSession(BaseModel):
	id: str
	scenario: Scenario
	difficulty: int
	score: int
	error_count: int
	started_at: datetime
	ended_at: Optional[datetime] = None
	analysis_id: Optional[str] = None


class RecommendationBundle(BaseModel):
	recommendations: List[Recommendation]
	stats: RecommendationStats
	recent_sessions: List[RecentSession]
