"""
Tests for the recommendation engine: error statistics, difficulty,
recommendation picking, dashboard stats and recent sessions.
"""

import asyncio
import datetime
import uuid
from typing import Any, List

import pytest

from kaiwa import recommendations
from kaiwa.recommendations import (
    calculate_average_score,
    calculate_error_stats,
    calculate_stats,
    determine_recommended_difficulty,
    generate_recommendations,
    get_recommendations_for_user,
    map_conversations_to_recent_sessions,
)
from kaiwa.schemas import ERROR_TYPES, AnalysisRecord, ConversationError, ConversationRecord


NOW = datetime.datetime(2026, 10, 1, 12, 0, tzinfo=datetime.timezone.utc)


def make_analysis(**overrides: Any) -> AnalysisRecord:
    data = {
        "id": f"analysis-{uuid.uuid4().hex[:8]}",
        "conversation_id": f"conv-{uuid.uuid4().hex[:8]}",
        "user_id": "user-1",
        "score": 75,
        "errors": [],
        "suggestions": [],
        "created_at": NOW,
    }
    data.update(overrides)
    return AnalysisRecord(**data)


def make_conversation(**overrides: Any) -> ConversationRecord:
    data = {
        "id": f"conv-{uuid.uuid4().hex[:8]}",
        "user_id": "user-1",
        "scenario": "restaurant",
        "difficulty": 2,
        "status": "completed",
        "messages": [],
        "started_at": NOW,
        "ended_at": NOW,
    }
    data.update(overrides)
    return ConversationRecord(**data)


def errors(*types: str) -> List[ConversationError]:
    return [ConversationError(type=t, original="test", correction="test", explanation="test") for t in types]


def test_weak_points_from_errors() -> None:
    summary = calculate_error_stats([make_analysis(errors=errors("grammar", "grammar", "vocabulary"))])

    assert summary.total_errors == 3
    assert [(s.type, s.count, s.percentage) for s in summary.weak_points] == [
        ("grammar", 2, 67),
        ("vocabulary", 1, 33),
    ]
    assert [s.type for s in summary.strong_points] == ["wordOrder", "politeness"]
    assert all(s.count == 0 and s.percentage == 0 for s in summary.strong_points)


def test_errors_counted_across_analyses() -> None:
    analyses = [
        make_analysis(errors=errors("politeness")),
        make_analysis(errors=errors("politeness", "wordOrder")),
    ]
    summary = calculate_error_stats(analyses)

    assert summary.weak_points[0].type == "politeness"
    assert summary.weak_points[0].count == 2
    assert summary.weak_points[0].percentage == 67


def test_unknown_error_types_are_ignored() -> None:
    summary = calculate_error_stats([make_analysis(errors=errors("pronunciation", "grammar"))])

    assert summary.total_errors == 1
    assert [s.type for s in summary.weak_points] == ["grammar"]
    assert summary.weak_points[0].percentage == 100


def test_no_errors_means_everything_is_strong() -> None:
    summary = calculate_error_stats([make_analysis(), make_analysis(errors=errors("spelling"))])

    assert summary.total_errors == 0
    assert summary.weak_points == []
    assert [s.type for s in summary.strong_points] == ERROR_TYPES
    assert all(s.percentage == 0 for s in summary.strong_points)


def test_equal_counts_are_all_weak_in_taxonomy_order() -> None:
    summary = calculate_error_stats([make_analysis(errors=errors("politeness", "wordOrder", "vocabulary", "grammar"))])

    assert [s.type for s in summary.weak_points] == ERROR_TYPES
    assert summary.strong_points == []


@pytest.mark.parametrize("error_types", [
    (),
    ("grammar",),
    ("grammar", "grammar", "grammar", "vocabulary"),
    ("politeness", "politeness", "wordOrder", "unknown"),
    ("grammar", "vocabulary", "wordOrder", "politeness", "politeness"),
])
def test_every_type_lands_in_exactly_one_list(error_types) -> None:
    summary = calculate_error_stats([make_analysis(errors=errors(*error_types))])

    weak = [s.type for s in summary.weak_points]
    strong = [s.type for s in summary.strong_points]
    assert sorted(weak + strong) == sorted(ERROR_TYPES)
    assert not set(weak) & set(strong)
    assert sum(s.count for s in summary.weak_points + summary.strong_points) == summary.total_errors
    assert [s.count for s in summary.strong_points] == sorted(s.count for s in summary.strong_points)


def test_average_score_rounds_half_up() -> None:
    assert calculate_average_score([]) == 0
    assert calculate_average_score([make_analysis(score=90), make_analysis(score=85)]) == 88
    assert calculate_average_score([make_analysis(score=0), make_analysis(score=1)]) == 1
    assert calculate_average_score([make_analysis(score=80), make_analysis(score=70), make_analysis(score=90)]) == 80


def test_difficulty_without_history_is_unchanged() -> None:
    assert determine_recommended_difficulty([], 4) == 4
    assert determine_recommended_difficulty([]) == 1


@pytest.mark.parametrize("scores, current, expected", [
    ([90, 85], 2, 3),
    ([40, 35], 3, 2),
    ([80], 5, 5),
    ([10], 1, 1),
    ([65, 70], 3, 3),
    ([50], 2, 2),
    ([79, 79], 2, 2),
    ([79, 80], 2, 3),
    ([100], None, 2),
])
def test_difficulty_adjustment(scores, current, expected) -> None:
    analyses = [make_analysis(score=s) for s in scores]
    assert determine_recommended_difficulty(analyses, current) == expected


@pytest.mark.parametrize("current", [1, 2, 3, 4, 5])
@pytest.mark.parametrize("score", [0, 49, 50, 79, 80, 100])
def test_difficulty_stays_in_bounds(current, score) -> None:
    result = determine_recommended_difficulty([make_analysis(score=score)], current)
    assert 1 <= result <= 5
    assert abs(result - current) <= 1


def test_recommends_for_top_weak_point() -> None:
    analyses = [make_analysis(errors=errors("grammar", "grammar", "vocabulary"))]
    conversations = [make_conversation(scenario="restaurant")]

    recs = generate_recommendations(analyses, conversations)

    assert recs[0].priority == "high"
    assert recs[0].target_weak_points == ["grammar"]
    assert recs[0].scenario == "introduction"
    assert recs[0].reason_key == "dashboard.recommendations.reasons.grammar"
    # Runner-up does not look at recently practiced scenarios
    assert recs[1].priority == "medium"
    assert recs[1].scenario == "restaurant"
    assert recs[1].target_weak_points == ["vocabulary"]
    assert len(recs) == 2


def test_top_pick_skips_recent_scenarios() -> None:
    analyses = [make_analysis(errors=errors("vocabulary"))]
    conversations = [make_conversation(scenario="restaurant"), make_conversation(scenario="shopping")]

    recs = generate_recommendations(analyses, conversations)

    assert recs[0].scenario == "convenience"


def test_top_pick_takes_first_candidate_once_three_scenarios_are_recent() -> None:
    analyses = [make_analysis(errors=errors("grammar"))]
    conversations = [
        make_conversation(scenario="introduction"),
        make_conversation(scenario="shopping"),
        make_conversation(scenario="directions"),
    ]

    recs = generate_recommendations(analyses, conversations)

    assert recs[0].scenario == "introduction"
    assert recs[0].priority == "high"


def test_second_pick_avoids_first_pick_scenario() -> None:
    analyses = [make_analysis(errors=errors("grammar", "grammar", "wordOrder"))]

    recs = generate_recommendations(analyses, [])

    assert [(r.scenario, r.priority) for r in recs] == [("introduction", "high"), ("restaurant", "medium")]


def test_new_scenario_when_no_weak_points() -> None:
    recs = generate_recommendations([], [make_conversation(scenario="restaurant")])

    assert len(recs) == 1
    assert recs[0].scenario != "restaurant"
    assert recs[0].scenario == "shopping"
    assert recs[0].priority == "medium"
    assert recs[0].reason_key == "dashboard.recommendations.reasons.variety"
    assert recs[0].target_weak_points == []


def test_only_three_latest_conversations_count_as_recent() -> None:
    conversations = [
        make_conversation(scenario="restaurant"),
        make_conversation(scenario="shopping"),
        make_conversation(scenario="introduction"),
        make_conversation(scenario="station"),
    ]

    recs = generate_recommendations([], conversations)

    assert recs[0].reason_key == "dashboard.recommendations.reasons.variety"
    assert recs[0].scenario == "station"


def test_continue_fallback_when_everything_is_recent(monkeypatch) -> None:
    monkeypatch.setattr(recommendations, "SCENARIOS", ["restaurant"])

    recs = generate_recommendations([], [make_conversation(scenario="restaurant", difficulty=4)])

    assert len(recs) == 1
    assert recs[0].scenario == "restaurant"
    assert recs[0].priority == "low"
    assert recs[0].reason_key == "dashboard.recommendations.reasons.continue"
    assert recs[0].difficulty == 4


def test_difficulty_follows_scores() -> None:
    up = generate_recommendations(
        [make_analysis(score=90), make_analysis(score=85)],
        [make_conversation(difficulty=2), make_conversation(difficulty=2)],
    )
    down = generate_recommendations(
        [make_analysis(score=40), make_analysis(score=35)],
        [make_conversation(difficulty=3), make_conversation(difficulty=3)],
    )

    assert up[0].difficulty == 3
    assert down[0].difficulty == 2


def test_difficulty_seeded_from_latest_conversation() -> None:
    recs = generate_recommendations(
        [make_analysis(score=60)],
        [make_conversation(difficulty=4), make_conversation(difficulty=1)],
    )
    assert all(r.difficulty == 4 for r in recs)

    assert generate_recommendations([make_analysis(score=95)], [])[0].difficulty == 2


def test_never_more_than_three_never_empty() -> None:
    cases = [
        ([make_analysis(errors=errors("grammar", "vocabulary", "wordOrder", "politeness"))], []),
        ([], []),
        ([make_analysis(errors=errors("politeness") * 5)], [make_conversation(scenario=s) for s in ("restaurant", "introduction", "hotel")]),
    ]
    for analyses, conversations in cases:
        recs = generate_recommendations(analyses, conversations)
        assert 1 <= len(recs) <= 3


def test_recommendation_ids_are_fresh() -> None:
    first = generate_recommendations([], [])
    second = generate_recommendations([], [])

    assert first[0].id.startswith("rec-")
    assert first[0].id != second[0].id
    assert first[0].scenario == second[0].scenario


def test_stats_average_score_and_completed_sessions() -> None:
    analyses = [make_analysis(score=80), make_analysis(score=70), make_analysis(score=90)]
    conversations = [
        make_conversation(status="completed"),
        make_conversation(status="completed"),
        make_conversation(status="active"),
        make_conversation(status="abandoned"),
    ]

    stats = calculate_stats(analyses, conversations)

    assert stats.average_score == 80
    assert stats.total_sessions == 2


def test_stats_for_empty_history() -> None:
    stats = calculate_stats([], [])

    assert stats.average_score == 0
    assert stats.total_sessions == 0
    assert stats.recent_scores == []
    assert stats.weak_points == []
    assert len(stats.strong_points) == 4


def test_recent_scores_join_scenarios() -> None:
    hotel = make_conversation(id="conv-hotel", scenario="hotel")
    analyses = [make_analysis(conversation_id="conv-hotel", score=64)]
    analyses += [make_analysis(score=70 + i) for i in range(6)]

    stats = calculate_stats(analyses, [hotel])

    assert len(stats.recent_scores) == 5
    first = stats.recent_scores[0]
    assert (first.session_id, first.score, first.scenario, first.date) == ("conv-hotel", 64, "hotel", NOW)
    # No matching conversation falls back to the default scenario
    assert {s.scenario for s in stats.recent_scores[1:]} == {"restaurant"}


def test_recent_sessions_with_matching_analysis() -> None:
    conversations = [make_conversation(id="conv-1", scenario="restaurant", difficulty=3)]
    analyses = [make_analysis(id="analysis-1", conversation_id="conv-1", score=85, errors=errors("grammar"))]

    sessions = map_conversations_to_recent_sessions(conversations, analyses)

    assert sessions[0].id == "conv-1"
    assert sessions[0].difficulty == 3
    assert sessions[0].score == 85
    assert sessions[0].error_count == 1
    assert sessions[0].analysis_id == "analysis-1"


def test_recent_sessions_without_analysis() -> None:
    sessions = map_conversations_to_recent_sessions([make_conversation(id="conv-1", ended_at=None)], [])

    assert sessions[0].score == 0
    assert sessions[0].error_count == 0
    assert sessions[0].analysis_id is None
    assert sessions[0].ended_at is None


def test_recent_sessions_keep_order_and_length() -> None:
    conversations = [make_conversation(id=f"conv-{i}") for i in range(4)]
    analyses = [
        make_analysis(id="a-late", conversation_id="conv-2", score=60),
        make_analysis(id="a-early", conversation_id="conv-2", score=99),
    ]

    sessions = map_conversations_to_recent_sessions(conversations, analyses)

    assert [s.id for s in sessions] == ["conv-0", "conv-1", "conv-2", "conv-3"]
    assert sessions[2].analysis_id == "a-late"


class ListSource:
    def __init__(self, analyses, conversations) -> None:
        self.analyses = analyses
        self.conversations = conversations
        self.calls = []

    def fetch_recent_analyses(self, user_id, limit):
        self.calls.append(("analyses", user_id, limit))
        return self.analyses[:limit]

    def fetch_recent_conversations(self, user_id, limit):
        self.calls.append(("conversations", user_id, limit))
        return self.conversations[:limit]


def test_get_recommendations_for_user() -> None:
    conversations = [make_conversation(id=f"conv-{i}", status="active" if i == 0 else "completed") for i in range(8)]
    analyses = [make_analysis(conversation_id="conv-1", score=88, errors=errors("politeness"))]
    source = ListSource(analyses, conversations)

    bundle = asyncio.run(get_recommendations_for_user("user-1", source))

    assert sorted(source.calls) == [("analyses", "user-1", 10), ("conversations", "user-1", 10)]
    assert bundle.recommendations[0].target_weak_points == ["politeness"]
    assert bundle.stats.total_sessions == 7
    assert [s.id for s in bundle.recent_sessions] == ["conv-1", "conv-2", "conv-3", "conv-4", "conv-5"]
    assert bundle.recent_sessions[0].score == 88


def test_get_recommendations_respects_limit() -> None:
    source = ListSource([], [make_conversation() for _ in range(5)])

    bundle = asyncio.run(get_recommendations_for_user("user-1", source, limit=2))

    assert ("conversations", "user-1", 2) in source.calls
    assert bundle.stats.total_sessions == 2


def test_fetch_failure_aborts() -> None:
    class Broken(ListSource):
        def fetch_recent_conversations(self, user_id, limit):
            raise RuntimeError("store down")

    with pytest.raises(RuntimeError, match="store down"):
        asyncio.run(get_recommendations_for_user("user-1", Broken([], [])))
