"""
Practice Recommendations
========================

Turns a learner's recent history into what to practice next. Everything here
is pure computation over records that the caller has already fetched
(newest first); the only I/O is the paired fetch in
``get_recommendations_for_user``.

- Error statistics: per-category error counts split into weak and strong points
- Difficulty: next-session level derived from the average score
- Recommendations: up to three scenarios targeting the weakest categories
- Stats and recent sessions for the dashboard
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
import uuid
from typing import Dict, List, Optional, Sequence, Set

from pydantic import BaseModel

from .schemas import (
	ERROR_TYPES,
	SCENARIOS,
	AnalysisRecord,
	ConversationRecord,
	ErrorStat,
	RecentSession,
	Recommendation,
	RecommendationBundle,
	RecommendationStats,
	ScoreEntry,
)


logger = logging.getLogger(__name__)

# Each error category maps to four scenarios that exercise it, in preference order
ERROR_TYPE_SCENARIO_MAP: Dict[str, List[str]] = {
	"grammar": ["introduction", "shopping", "directions", "hotel"],
	"vocabulary": ["restaurant", "shopping", "convenience", "hospital"],
	"wordOrder": ["introduction", "restaurant", "bank", "station"],
	"politeness": ["restaurant", "introduction", "hotel", "bank"],
}

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
PROMOTE_SCORE = 80
DEMOTE_SCORE = 50

RECENT_SCENARIO_WINDOW = 3
MAX_RECOMMENDATIONS = 3
RECENT_SCORES_LIMIT = 5
RECENT_SESSIONS_LIMIT = 5
HISTORY_LIMIT = 10

DEFAULT_SCENARIO = "restaurant"
REASON_KEY_PREFIX = "dashboard.recommendations.reasons."


class ErrorSummary(BaseModel):
	weak_points: List[ErrorStat]
	strong_points: List[ErrorStat]
	total_errors: int


def _round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def calculate_error_stats(analyses: Sequence[AnalysisRecord]) -> ErrorSummary:
	"""Count errors per category and split the categories into weak and strong points.

	Weak points come back in severity order (most frequent first). A category
	is weak when it is above the per-category average or occurs at all, so
	strong points are in practice the categories with no errors; they are
	sorted least frequent first. Every category lands in exactly one list.
	"""
	counts: Dict[str, int] = {error_type: 0 for error_type in ERROR_TYPES}
	total_errors = 0
	for analysis in analyses:
		for error in analysis.errors:
			if error.type in counts:
				counts[error.type] += 1
				total_errors += 1

	stats = [
		ErrorStat(
			type=error_type,
			count=counts[error_type],
			percentage=_round_half_up(counts[error_type] / total_errors * 100) if total_errors > 0 else 0,
		)
		for error_type in ERROR_TYPES
	]
	# sorted() is stable, so ties keep taxonomy order
	by_severity = sorted(stats, key=lambda s: s.count, reverse=True)

	average = total_errors / len(ERROR_TYPES)
	weak_points = [s for s in by_severity if s.count > average or s.count > 0]
	weak_types = {s.type for s in weak_points}
	strong_points = sorted((s for s in by_severity if s.type not in weak_types), key=lambda s: s.count)
	return ErrorSummary(weak_points=weak_points, strong_points=strong_points, total_errors=total_errors)


def calculate_average_score(analyses: Sequence[AnalysisRecord]) -> int:
	if not analyses:
		return 0
	return _round_half_up(sum(a.score for a in analyses) / len(analyses))


def determine_recommended_difficulty(
	analyses: Sequence[AnalysisRecord],
	current_difficulty: Optional[int] = None,
) -> int:
	"""Step the difficulty up after strong sessions and down after weak ones, within 1–5."""
	current = current_difficulty or MIN_DIFFICULTY
	if not analyses:
		return current
	average = calculate_average_score(analyses)
	if average >= PROMOTE_SCORE and current < MAX_DIFFICULTY:
		return min(current + 1, MAX_DIFFICULTY)
	if average < DEMOTE_SCORE and current > MIN_DIFFICULTY:
		return max(current - 1, MIN_DIFFICULTY)
	return current


def _recent_scenarios(conversations: Sequence[ConversationRecord]) -> Set[str]:
	return {c.scenario for c in conversations[:RECENT_SCENARIO_WINDOW]}


def _recommendation_id() -> str:
	return f"rec-{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


def _make_recommendation(
	scenario: str,
	difficulty: int,
	*,
	reason: str,
	reason_key: str,
	priority: str,
	target_weak_points: Optional[List[str]] = None,
) -> Recommendation:
	return Recommendation(
		id=_recommendation_id(),
		scenario=scenario,
		difficulty=difficulty,
		reason=reason,
		reason_key=REASON_KEY_PREFIX + reason_key,
		priority=priority,
		target_weak_points=target_weak_points or [],
	)


def generate_recommendations(
	analyses: Sequence[AnalysisRecord],
	conversations: Sequence[ConversationRecord],
) -> List[Recommendation]:
	"""Build up to three practice recommendations.

	Args:
		analyses: Recent analyses, newest first.
		conversations: Recent conversations, newest first.

	Returns:
		A non-empty list: a high priority pick for the top weak point, a
		medium one for the runner-up, otherwise an unpracticed scenario for
		variety, and finally a low priority "continue" fallback.
	"""
	recommendations: List[Recommendation] = []
	weak_points = calculate_error_stats(analyses).weak_points
	recent = _recent_scenarios(conversations)
	last_difficulty = conversations[0].difficulty if conversations else MIN_DIFFICULTY
	difficulty = determine_recommended_difficulty(analyses, last_difficulty)

	if weak_points:
		top = weak_points[0]
		for scenario in ERROR_TYPE_SCENARIO_MAP[top.type]:
			if scenario not in recent or len(recent) >= RECENT_SCENARIO_WINDOW:
				recommendations.append(_make_recommendation(
					scenario,
					difficulty,
					reason=f"Focus on {top.type} improvement",
					reason_key=top.type,
					priority="high",
					target_weak_points=[top.type],
				))
				break

		if len(weak_points) > 1 and weak_points[1].count > 0:
			second = weak_points[1]
			used = {r.scenario for r in recommendations}
			for scenario in ERROR_TYPE_SCENARIO_MAP[second.type]:
				if scenario not in used:
					recommendations.append(_make_recommendation(
						scenario,
						difficulty,
						reason=f"Practice {second.type}",
						reason_key=second.type,
						priority="medium",
						target_weak_points=[second.type],
					))
					break

	if not recommendations:
		for scenario in SCENARIOS:
			if scenario not in recent:
				recommendations.append(_make_recommendation(
					scenario,
					difficulty,
					reason="Try a new scenario",
					reason_key="variety",
					priority="medium",
				))
				break

	if not recommendations:
		recommendations.append(_make_recommendation(
			DEFAULT_SCENARIO,
			difficulty,
			reason="Continue practicing",
			reason_key="continue",
			priority="low",
		))

	return recommendations[:MAX_RECOMMENDATIONS]


def calculate_stats(
	analyses: Sequence[AnalysisRecord],
	conversations: Sequence[ConversationRecord],
) -> RecommendationStats:
	summary = calculate_error_stats(analyses)
	scenario_by_id = {}
	for conversation in conversations:
		scenario_by_id.setdefault(conversation.id, conversation.scenario)

	recent_scores = [
		ScoreEntry(
			session_id=analysis.conversation_id,
			score=analysis.score,
			scenario=scenario_by_id.get(analysis.conversation_id, DEFAULT_SCENARIO),
			date=analysis.created_at,
		)
		for analysis in analyses[:RECENT_SCORES_LIMIT]
	]
	return RecommendationStats(
		total_sessions=sum(1 for c in conversations if c.status == "completed"),
		average_score=calculate_average_score(analyses),
		weak_points=summary.weak_points,
		strong_points=summary.strong_points,
		recent_scores=recent_scores,
	)


def map_conversations_to_recent_sessions(
	conversations: Sequence[ConversationRecord],
	analyses: Sequence[AnalysisRecord],
) -> List[RecentSession]:
	# First analysis wins when several point at the same conversation
	analysis_by_conversation: Dict[str, AnalysisRecord] = {}
	for analysis in analyses:
		analysis_by_conversation.setdefault(analysis.conversation_id, analysis)

	sessions: List[RecentSession] = []
	for conversation in conversations:
		analysis = analysis_by_conversation.get(conversation.id)
		sessions.append(RecentSession(
			id=conversation.id,
			scenario=conversation.scenario,
			difficulty=conversation.difficulty,
			score=analysis.score if analysis else 0,
			error_count=len(analysis.errors) if analysis else 0,
			started_at=conversation.started_at,
			ended_at=conversation.ended_at,
			analysis_id=analysis.id if analysis else None,
		))
	return sessions


async def get_recommendations_for_user(user_id: str, source, *, limit: int = HISTORY_LIMIT) -> RecommendationBundle:
	"""Fetch the user's recent history and derive recommendations, stats and recent sessions.

	``source`` provides blocking ``fetch_recent_analyses(user_id, limit)`` and
	``fetch_recent_conversations(user_id, limit)``, both newest first. The two
	fetches run concurrently in worker threads; if either fails the error
	propagates and nothing is computed.
	"""
	analyses, conversations = await asyncio.gather(
		asyncio.to_thread(source.fetch_recent_analyses, user_id, limit),
		asyncio.to_thread(source.fetch_recent_conversations, user_id, limit),
	)
	logger.debug("Building recommendations for %s from %d analyses, %d conversations", user_id, len(analyses), len(conversations))

	completed = [c for c in conversations if c.status == "completed"][:RECENT_SESSIONS_LIMIT]
	return RecommendationBundle(
		recommendations=generate_recommendations(analyses, conversations),
		stats=calculate_stats(analyses, conversations),
		recent_sessions=map_conversations_to_recent_sessions(completed, analyses),
	)
