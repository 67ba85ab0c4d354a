"""OpenAI quiz generation.

Builds the quiz prompt, calls the chat completions API in JSON mode and
validates the reply into QuizQuestion records. Nothing here retries.
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple

from smartquiz.errors import InvalidQuestionShape, MalformedModelResponse, QuizGenerationFailed
from smartquiz.models import QuizQuestion

try:
    from openai import OpenAI
except Exception:
    OpenAI = None

logger = logging.getLogger(__name__)

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20
MAX_TOKENS = 2000
TEMPERATURE = 0.7
DEFAULT_MODEL = "gpt-4o"

SYSTEM_PROMPT = (
    "You are an expert quiz generator. Create high-quality multiple choice questions "
    "based on the provided content. Always respond with valid JSON."
)


def _api_key(api_key: Optional[str] = None) -> str:
    return (api_key or os.getenv("OPENAI_API_KEY", "")).strip()


def client_ready(api_key: Optional[str] = None) -> Tuple[bool, str]:
    if OpenAI is None:
        return False, "OpenAI SDK not installed"
    if not _api_key(api_key):
        return False, "OPENAI_API_KEY is missing"
    return True, ""


def model_name() -> str:
    return (os.getenv("OPENAI_MODEL", "").strip() or DEFAULT_MODEL)


def get_client(api_key: Optional[str] = None, timeout: float = 60):
    ok, _ = client_ready(api_key)
    if not ok:
        return None
    return OpenAI(api_key=_api_key(api_key), timeout=timeout)


def build_quiz_prompt(text: str, title_hint: str, question_count: int) -> str:
    title_line = f"Title: {title_hint}\n\n" if title_hint else ""
    return f"""Convert the following document content into exactly {question_count} multiple choice questions (MCQs). Each question should have 4 options (A, B, C, D) and clearly indicate the correct answer.

{title_line}Document content:
{text}

Requirements:
- Generate exactly {question_count} questions
- Each question must have exactly 4 options
- Clearly identify the correct answer for each question
- The answer must match one of the options word for word
- Questions should test understanding of the key concepts
- Make questions challenging but fair
- Avoid trivial or overly obvious questions
- Distribute questions across different topics/concepts from the content

Respond with JSON in this exact format:
{{
  "questions": [
    {{
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "answer": "Option A"
    }}
  ]
}}"""


def safe_json_loads(s: str) -> Dict[str, Any]:
    if not s or not s.strip():
        raise MalformedModelResponse("Empty model output")
    text = s.strip()
    try:
        obj = json.loads(text)
    except ValueError:
        # Fallback: extract first JSON object from text
        m = re.search(r"\{.*\}", text, flags=re.DOTALL)
        if not m:
            raise MalformedModelResponse("Model did not return valid json")
        try:
            obj = json.loads(m.group(0))
        except ValueError:
            raise MalformedModelResponse("Model did not return valid json")
    if not isinstance(obj, dict):
        raise MalformedModelResponse("Model did not return a JSON object")
    return obj


def parse_quiz_payload(obj: Dict[str, Any], question_count: Optional[int] = None,
                       strict_answers: bool = False) -> List[QuizQuestion]:
    """
    Validate a decoded model reply.

    Raises MalformedModelResponse when "questions" is missing, not a list or
    empty, and InvalidQuestionShape for any malformed entry. Surplus
    questions past question_count are dropped from the end; a shortfall
    is rejected.
    """
    items = obj.get("questions") if isinstance(obj, dict) else None
    if not isinstance(items, list) or not items:
        raise MalformedModelResponse("Invalid response format from model")

    questions = [QuizQuestion.from_dict(item, strict_answers=strict_answers) for item in items]

    if question_count is not None:
        if len(questions) < question_count:
            raise MalformedModelResponse(
                f"Model returned {len(questions)} questions, expected {question_count}"
            )
        if len(questions) > question_count:
            logger.warning("Model returned %d questions, keeping the first %d", len(questions), question_count)
            questions = questions[:question_count]
    return questions


def generate_quiz(text: str, title_hint: str = "", question_count: int = 5, client=None,
                  model: Optional[str] = None, strict_answers: bool = True) -> List[QuizQuestion]:
    """
    Turn document text into exactly question_count validated questions.

    Any failure is raised as QuizGenerationFailed (or one of its
    validation subclasses) carrying the cause.
    """
    if isinstance(question_count, bool) or not isinstance(question_count, int) \
            or not MIN_QUESTIONS <= question_count <= MAX_QUESTIONS:
        raise QuizGenerationFailed(
            f"Failed to generate quiz: question count must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}"
        )

    if client is None:
        client = get_client()
    if client is None:
        _, msg = client_ready()
        raise QuizGenerationFailed(f"Failed to generate quiz: {msg or 'Client not available'}")

    try:
        res = client.chat.completions.create(
            model=model or model_name(),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_quiz_prompt(text, title_hint, question_count)},
            ],
            response_format={"type": "json_object"},
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
        content = res.choices[0].message.content or ""
    except Exception as e:
        logger.exception("OpenAI request failed")
        raise QuizGenerationFailed(f"Failed to generate quiz: {type(e).__name__}: {e}")

    try:
        obj = safe_json_loads(content)
        return parse_quiz_payload(obj, question_count=question_count, strict_answers=strict_answers)
    except (MalformedModelResponse, InvalidQuestionShape) as e:
        logger.error("Rejected model output: %s", e.message)
        raise type(e)(f"Failed to generate quiz: {e.message}")
