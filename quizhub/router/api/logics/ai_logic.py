import json
import re
from typing import Any, Dict, List, Mapping

import json5
from openai import OpenAI, OpenAIError

from quizhub.config import Settings, settings
from quizhub.exceptions import AIGenerationError, InvalidAIOutputError, ValidationError
from quizhub.log import get_logger
from quizhub.router.api.logics.quiz_validator import validate_question

log = get_logger(__name__)

# fixed sampling parameters for every generation request
TEMPERATURE = 0.7
TOP_P = 0.7
FREQUENCY_PENALTY = 1
MAX_TOKENS = 1536
TOP_K = 50

FENCED_BLOCK_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)```", re.DOTALL)
LEADING_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*")
TRAILING_FENCE_RE = re.compile(r"```$")

DOUBLE_QUOTES_RE = re.compile("[\u201C\u201D\u201E\u201F\u2033\u2036]")
SINGLE_QUOTES_RE = re.compile("[\u2018\u2019\u201A\u201B\u2032\u2035]")

UNDERSCORE_KEY_RE = re.compile(r"_([a-zA-Z0-9]+)_\s*:")
UNDERSCORE_VALUE_RE = re.compile(r":\s*_([^_\n]+)_")

# misspellings of "is_correct" seen in generator replies
FIELD_REPAIRS = [
    (re.compile(r"\bis_corre+ct\b"), "is_correct"),
    (re.compile(r"\bis_corect\b"), "is_correct"),
    (re.compile(r"\bis_corr+ect\b"), "is_correct"),
    (re.compile(r"\biscorrect\b"), "is_correct"),
]

PROMPT_TEMPLATE = """You are an expert quiz author. Here is the current quiz as JSON:
{quiz_json}

User context: {context}

Your task:
- Read the title, the description and the existing questions.
- Write the new question in the same language as the title, the existing questions or the user context (English, Spanish, Arabic, ...).
- Append exactly ONE relevant, original question to the "questions" list, matching the style and difficulty of the quiz.
- The new question must have at least 3 answers, exactly one of them correct ("is_correct": true).
- Return STRICTLY the complete quiz as JSON, with the new question appended to "questions".
- Do NOT write any text, explanation or comment outside the JSON.
- Use only plain double quotes (") for every key and string value, never typographic quotes.
- Spell every property exactly as in the example (for instance "is_correct").

Expected shape:
{{
  "title": "...",
  "description": "...",
  "questions": [
    ...existing questions...,
    {{
      "statement": "...",
      "points": 1000,
      "time_limit_s": 30,
      "position": ...,
      "answers": [
        {{ "text": "...", "is_correct": true }},
        {{ "text": "...", "is_correct": false }},
        {{ "text": "...", "is_correct": false }}
      ]
    }}
  ]
}}
"""


def build_ai_client(_settings: Settings) -> OpenAI:
    """OpenAI-compatible client. SDK retries are off: one failed call is final."""
    if not _settings.OPENAI_API_KEY:
        raise AIGenerationError("AI generation is not configured")
    return OpenAI(
        api_key=_settings.OPENAI_API_KEY,
        base_url=_settings.OPENAI_BASE_URL or None,
        timeout=_settings.AI_TIMEOUT_SECONDS,
        max_retries=0,
    )


def get_ai_client() -> OpenAI:
    return build_ai_client(settings)


def quiz_snapshot(trivia: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only what the generator needs. Images never go into the prompt."""
    questions = trivia.get("questions")
    if not isinstance(questions, list):
        questions = []

    snapshot_questions: List[Dict[str, Any]] = []
    for i, q in enumerate(questions):
        if not isinstance(q, Mapping):
            continue
        answers = q.get("answers") if isinstance(q.get("answers"), list) else []
        snapshot_questions.append({
            "statement": q.get("statement", ""),
            "points": q.get("points"),
            "time_limit_s": q.get("time_limit_s"),
            "position": q.get("position", i + 1),
            "answers": [
                {"text": a.get("text", ""), "is_correct": bool(a.get("is_correct"))}
                for a in answers if isinstance(a, Mapping)
            ],
        })

    return {
        "title": trivia.get("title", ""),
        "description": trivia.get("description") or "",
        "questions": snapshot_questions,
    }


def build_prompt(trivia: Mapping[str, Any], context: str) -> str:
    quiz_json = json.dumps(quiz_snapshot(trivia), indent=2, ensure_ascii=False)
    return PROMPT_TEMPLATE.format(quiz_json=quiz_json, context=context or "")


def strip_code_fences(text: str) -> str:
    text = text.strip()
    match = FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1)
    text = LEADING_FENCE_RE.sub("", text)
    return TRAILING_FENCE_RE.sub("", text.rstrip())


def normalize_quotes(text: str) -> str:
    text = DOUBLE_QUOTES_RE.sub('"', text)
    return SINGLE_QUOTES_RE.sub("'", text)


def repair_underscore_markers(text: str) -> str:
    text = UNDERSCORE_KEY_RE.sub(r'"\1":', text)
    return UNDERSCORE_VALUE_RE.sub(r': "\1"', text)


def repair_field_names(text: str) -> str:
    for pattern, replacement in FIELD_REPAIRS:
        text = pattern.sub(replacement, text)
    return text


def clean_ai_output(raw: str) -> str:
    """Best-effort repair of a generator reply before it is parsed.

    Steps run in order: code fences are stripped, typographic quotes become
    ASCII quotes, underscore-wrapped keys and values are quoted, known
    misspellings of ``is_correct`` are fixed, and whitespace is trimmed.
    """
    text = strip_code_fences(raw or "")
    text = normalize_quotes(text)
    text = repair_underscore_markers(text)
    text = repair_field_names(text)
    return text.strip()


def parse_ai_output(raw: str) -> Any:
    """Clean ``raw`` and parse it leniently (JSON5).

    Raises:
        InvalidAIOutputError: The cleaned text is still not parseable. The
            error carries the cleaned text, not the raw reply.
    """
    cleaned = clean_ai_output(raw)
    try:
        return json5.loads(cleaned)
    except ValueError as e:
        log.warning("Could not parse generator output: %s", e)
        raise InvalidAIOutputError("Invalid JSON from AI", raw=cleaned) from e


def _warn_if_unvalidated(document: Any) -> None:
    # the document goes back to the caller either way; it is validated
    # again only if the caller saves it through create or replace
    questions = document.get("questions") if isinstance(document, Mapping) else None
    if not isinstance(questions, list) or not questions:
        log.warning("Generated quiz has no questions list")
        return
    try:
        validate_question(questions[-1], len(questions))
    except ValidationError as e:
        log.warning("Generated question fails structural validation: %s", e.message)


def generate_question_logic(
    client: OpenAI, trivia: Mapping[str, Any], context: str, model: str = None
) -> Any:
    """Ask the generator for the quiz with one more question appended.

    Nothing is persisted here.

    Args:
        client (OpenAI): Chat-completion client
        trivia (Mapping): Current quiz snapshot
        context (str): Free-text guidance from the user
        model (str, optional): Model name. Defaults to ``settings.OPENAI_MODEL``.

    Raises:
        AIGenerationError: The request failed or returned no content
        InvalidAIOutputError: The reply could not be parsed

    Returns:
        Any: The parsed document, as returned by the generator
    """
    prompt = build_prompt(trivia, context)
    try:
        completion = client.chat.completions.create(
            model=model or settings.OPENAI_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=TEMPERATURE,
            top_p=TOP_P,
            frequency_penalty=FREQUENCY_PENALTY,
            max_tokens=MAX_TOKENS,
            extra_body={"top_k": TOP_K},
        )
    except OpenAIError as e:
        log.error("AI generation error: %s", e)
        raise AIGenerationError("AI generation failed") from e

    content = completion.choices[0].message.content if completion.choices else None
    if not content:
        raise AIGenerationError("AI generation failed: empty response")

    log.debug("AI raw response: %s", content)
    document = parse_ai_output(content)
    _warn_if_unvalidated(document)
    return document
