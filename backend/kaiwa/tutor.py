"""
AI tutor operations
===================

Prompt builders and response parsing for the three things the practice app
asks of the generative model:

- continue a role-play conversation in a scenario
- analyse a finished conversation into a score, itemised errors and suggestions
- generate learning material (explanation, examples, exercises) for one error

The model is asked for JSON and the first JSON object in its reply is used.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from .schemas import ERROR_TYPES, ConversationError, Message


logger = logging.getLogger(__name__)

LANGUAGE_NAMES: Dict[str, str] = {
	"zh": "Chinese (简体中文)",
	"ja": "Japanese (日本語)",
	"en": "English",
}
DEFAULT_LANGUAGE = "zh"


class AnalysisResult(BaseModel):
	score: int = Field(ge=0, le=100)
	errors: List[ConversationError] = Field(default_factory=list)
	suggestions: List[str] = Field(default_factory=list)


class ExerciseContent(BaseModel):
	question: str
	options: List[str]
	correct_index: int = 0


class MaterialContent(BaseModel):
	grammar_point: str
	explanation: str = ""
	examples: List[str] = Field(default_factory=list)
	exercises: List[ExerciseContent] = Field(default_factory=list)


def _extract_json_object(text: str) -> Dict[str, Any]:
	"""Parse the model reply as JSON, falling back to the first {...} block in it.

	Raises:
		ValueError: If no JSON object can be recovered.
	"""
	try:
		data = json.loads(text)
		if isinstance(data, dict):
			return data
	except (TypeError, ValueError):
		pass
	match = re.search(r"\{[\s\S]*\}", text or "")
	if match:
		try:
			data = json.loads(match.group(0))
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	raise ValueError("Invalid JSON response from model")


def _language_name(code: str) -> str:
	return LANGUAGE_NAMES.get(code, LANGUAGE_NAMES[DEFAULT_LANGUAGE])


def to_chat_history(messages: List[Message]) -> List[Dict[str, str]]:
	return [{"role": "model" if m.role == "assistant" else "user", "content": m.content} for m in messages]


async def generate_chat_response(client, system_instruction: str, history: List[Message], user_message: str) -> str:
	text = await client.chat(system_instruction, to_chat_history(history), user_message)
	if not text or not text.strip():
		raise RuntimeError("No response from model")
	return text.strip()


def build_analysis_prompt(messages: List[Message], scenario: str, difficulty: int, language: str) -> str:
	response_language = _language_name(language)
	transcript = "\n".join(f"{'User' if m.role == 'user' else 'AI'}: {m.content}" for m in messages)
	error_types = " | ".join(f'"{t}"' for t in ERROR_TYPES)
	return (
		"Analyze this Japanese conversation practice session.\n"
		f"Scenario: {scenario}\n"
		f"Difficulty Level: {difficulty}/5\n\n"
		f"Conversation:\n{transcript}\n\n"
		"Please analyze the user's responses and provide:\n"
		"1. An overall score (0-100)\n"
		"2. A list of errors found (grammar, vocabulary, word order, politeness issues)\n"
		"3. Improvement suggestions\n\n"
		f"IMPORTANT: All explanations and suggestions MUST be written in {response_language}.\n\n"
		"Return ONLY a JSON object:\n"
		"{\n"
		'  "score": number,\n'
		'  "errors": [\n'
		"    {\n"
		f'      "type": {error_types},\n'
		'      "original": "what the user said (keep in Japanese)",\n'
		'      "correction": "correct version (keep in Japanese)",\n'
		f'      "explanation": "explanation in {response_language}"\n'
		"    }\n"
		"  ],\n"
		f'  "suggestions": ["suggestion in {response_language}"]\n'
		"}"
	)


def parse_analysis(text: str) -> AnalysisResult:
	data = _extract_json_object(text)
	try:
		score = int(round(float(data.get("score", 0))))
	except (TypeError, ValueError):
		score = 0
	errors = []
	for raw in data.get("errors") or []:
		if not isinstance(raw, dict) or not raw.get("type"):
			logger.debug("Skipping malformed error entry: %r", raw)
			continue
		errors.append(ConversationError(
			id=f"error-{len(errors)}",
			type=str(raw["type"]),
			original=str(raw.get("original", "")),
			correction=str(raw.get("correction", "")),
			explanation=str(raw.get("explanation", "")),
		))
	suggestions = [str(s) for s in (data.get("suggestions") or []) if s]
	return AnalysisResult(score=max(0, min(100, score)), errors=errors, suggestions=suggestions)


async def analyze_conversation(
	client,
	messages: List[Message],
	scenario: str,
	difficulty: int,
	language: str = DEFAULT_LANGUAGE,
) -> AnalysisResult:
	prompt = build_analysis_prompt(messages, scenario, difficulty, language)
	return parse_analysis(await client.generate(prompt))


def build_material_prompt(error_type: str, original: str, correction: str, explanation: str, language: str) -> str:
	return (
		"Generate learning material for a Japanese language learner.\n\n"
		"Error Information:\n"
		f"- Type: {error_type}\n"
		f"- Original (incorrect): {original}\n"
		f"- Correction: {correction}\n"
		f"- Explanation: {explanation}\n\n"
		f"Please create learning material in {_language_name(language)} that includes:\n"
		"1. The grammar point or vocabulary being taught\n"
		"2. A clear explanation\n"
		"3. 3-5 example sentences\n"
		"4. 3 multiple choice exercises\n\n"
		"Return ONLY a JSON object:\n"
		"{\n"
		'  "grammar_point": "grammar point title",\n'
		'  "explanation": "detailed explanation",\n'
		'  "examples": ["example 1", "example 2", "example 3"],\n'
		'  "exercises": [\n'
		'    {"question": "Fill in the blank: ___", "options": ["a", "b", "c", "d"], "correct_index": 0}\n'
		"  ]\n"
		"}"
	)


def parse_material(text: str) -> MaterialContent:
	data = _extract_json_object(text)
	exercises = []
	for raw in data.get("exercises") or []:
		options = [str(o) for o in (raw.get("options") or [])] if isinstance(raw, dict) else []
		if not options:
			continue
		try:
			correct = int(raw.get("correct_index", 0))
		except (TypeError, ValueError):
			correct = 0
		exercises.append(ExerciseContent(
			question=str(raw.get("question", "")),
			options=options,
			correct_index=correct if 0 <= correct < len(options) else 0,
		))
	return MaterialContent(
		grammar_point=str(data.get("grammar_point") or "").strip() or "Review",
		explanation=str(data.get("explanation") or ""),
		examples=[str(e) for e in (data.get("examples") or [])],
		exercises=exercises,
	)


async def generate_learning_material(
	client,
	error_type: str,
	original: str,
	correction: str,
	explanation: str,
	language: str = DEFAULT_LANGUAGE,
) -> MaterialContent:
	prompt = build_material_prompt(error_type, original, correction, explanation, language)
	return parse_material(await client.generate(prompt))
