"""Gemini-backed authoring helpers: cloze distractors and question rephrasings.

Both helpers always return something usable; model or network failures fall
back to simple deterministic suggestions.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Callable, List, Optional

from .gemini_client import GeminiClient, GeminiError


logger = logging.getLogger(__name__)

ClientFactory = Callable[[], GeminiClient]


def fallback_distractors(correct_answers: List[str]) -> List[List[str]]:
    return [[answer + "s", answer[:-1], "incorrect"] for answer in correct_answers]


def _extract_json_array(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        pass
    match = re.search(r"\[.*\]", text, flags=re.S)
    if not match:
        raise ValueError("no JSON array in model output")
    return json.loads(match.group(0))


def _distractor_prompt(text: str, correct_answers: List[str]) -> str:
    return (
        f'Given this text: "{text}" and these correct answers: {", ".join(correct_answers)},\n'
        "generate 3 plausible but incorrect alternative answers for each blank.\n"
        "The distractors should be similar in length and style to the correct answers but clearly wrong.\n"
        'Return ONLY a JSON array with one inner array per blank: [["distractor1", "distractor2", "distractor3"], ...]'
    )


def _suggestion_prompt(question_text: str) -> str:
    return (
        f'Rephrase this question in 3 different ways while keeping the same meaning: "{question_text}"\n'
        "Return ONLY a JSON array of strings."
    )


async def _ask(prompt: str, client_factory: Optional[ClientFactory]) -> Any:
    client = (client_factory or GeminiClient)()
    try:
        raw = await client.generate(prompt)
    finally:
        await client.aclose()
    return _extract_json_array(raw)


async def generate_distractors(
    text: str,
    correct_answers: List[str],
    *,
    client_factory: Optional[ClientFactory] = None,
) -> List[List[str]]:
    if not correct_answers:
        return []
    try:
        data = await _ask(_distractor_prompt(text, correct_answers), client_factory)
    except (GeminiError, ValueError) as err:
        logger.warning("Distractor generation failed, using fallback: %s", err)
        return fallback_distractors(correct_answers)
    if not isinstance(data, list) or not all(isinstance(row, list) for row in data):
        logger.warning("Distractor generation returned an unexpected shape, using fallback")
        return fallback_distractors(correct_answers)
    return [[str(d).strip() for d in row] for row in data]


async def generate_question_suggestions(
    question_text: str,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> List[str]:
    try:
        data = await _ask(_suggestion_prompt(question_text), client_factory)
    except (GeminiError, ValueError) as err:
        logger.warning("Question suggestion failed, using fallback: %s", err)
        return [question_text]
    if not isinstance(data, list) or not data:
        return [question_text]
    return [str(s).strip() for s in data if str(s).strip()] or [question_text]
