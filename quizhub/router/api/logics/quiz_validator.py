from typing import Any, Mapping

from quizhub.exceptions import ValidationError


def validate_quiz_payload(payload: Any) -> None:
    """Structural checks on a quiz tree before it is written.

    Shape, completeness and the types of the optional text fields are
    checked. Duplicate titles, duplicate answer texts and numeric ranges
    are not; points, time limit and position fall back to defaults when
    they are missing, not numbers or too large to store.

    Args:
        payload (Any): Decoded request body.

    Raises:
        ValidationError: On the first rule the payload breaks.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Invalid payload: expected a JSON object")

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")

    for field in ("description", "image"):
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{field} must be a string")

    questions = payload.get("questions")
    if not isinstance(questions, list):
        raise ValidationError("questions must be a list")

    for i, question in enumerate(questions, start=1):
        validate_question(question, i)


def validate_question(question: Any, number: int) -> None:
    if not isinstance(question, Mapping):
        raise ValidationError(f"Question #{number} must be an object")

    statement = question.get("statement")
    if not isinstance(statement, str) or not statement.strip():
        raise ValidationError(f"Question #{number} missing 'statement'")

    answers = question.get("answers")
    if not isinstance(answers, list) or len(answers) == 0:
        raise ValidationError(f"Question #{number} must have at least 1 answer")

    if not all(isinstance(a, Mapping) for a in answers):
        raise ValidationError(f"Question #{number} has an answer that is not an object")

    if not any(a.get("is_correct") for a in answers):
        raise ValidationError(f"Question #{number} must have at least 1 correct answer")
