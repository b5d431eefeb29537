import math
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from quizhub.exceptions import (
    ForbiddenError,
    NotFoundError,
    QuizHubError,
    ServerError,
    ValidationError,
)
from quizhub.log import get_logger
from quizhub.model.answers import Answer
from quizhub.model.questions import (
    DEFAULT_POINTS,
    DEFAULT_QUESTION_TYPE,
    DEFAULT_TIME_LIMIT_S,
    Question,
)
from quizhub.model.quizzes import Quiz
from quizhub.model.users import User
from quizhub.router.api.logics.quiz_validator import validate_quiz_payload
from quizhub.schema.quiz_schema import (
    AnswerOut,
    QuestionOut,
    QuizOut,
    QuizSummaryOut,
    VisibilityOut,
)

log = get_logger(__name__)

SCOPE_MINE = "mine"
SCOPE_PUBLIC = "public"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


@contextmanager
def _transaction(db: Session, action: str):
    """Commit when the block succeeds, roll back on every failure path."""
    try:
        yield
        db.commit()
    except QuizHubError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Failed to %s", action)
        raise ServerError(f"Could not {action}") from e
    except Exception:
        db.rollback()
        raise


def _as_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        value = int(value)
    if not isinstance(value, int):
        return default
    # the store keeps 64-bit signed integers
    return value if INT64_MIN <= value <= INT64_MAX else default


def _add_questions(db: Session, quiz_id: int, questions: List[Mapping[str, Any]]) -> None:
    """Insert questions in payload order, each with its answers."""
    for i, q in enumerate(questions):
        question_type = q.get("type")
        question = Question(
            quiz_id=quiz_id,
            statement=q["statement"],
            type=question_type if isinstance(question_type, str) and question_type else DEFAULT_QUESTION_TYPE,
            time_limit_s=_as_int(q.get("time_limit_s"), DEFAULT_TIME_LIMIT_S),
            points=_as_int(q.get("points"), DEFAULT_POINTS),
            position=_as_int(q.get("position"), i + 1),
        )
        question.answers = [
            Answer(
                text="" if a.get("text") is None else str(a.get("text")),
                is_correct=bool(a.get("is_correct")),
            )
            for a in q["answers"]
        ]
        db.add(question)
        # one flush per question keeps ids in payload order
        db.flush()


def _delete_questions(db: Session, quiz_ids: Iterable[int]) -> None:
    """Delete every answer, then every question, of the given quizzes."""
    quiz_ids = list(quiz_ids)
    if not quiz_ids:
        return
    question_ids = select(Question.id).where(Question.quiz_id.in_(quiz_ids))
    db.query(Answer).filter(Answer.question_id.in_(question_ids)).delete(synchronize_session=False)
    db.query(Question).filter(Question.quiz_id.in_(quiz_ids)).delete(synchronize_session=False)


def delete_quiz_trees(db: Session, quiz_ids: Iterable[int]) -> None:
    """Remove whole quiz trees. The caller owns the transaction."""
    quiz_ids = list(quiz_ids)
    if not quiz_ids:
        return
    _delete_questions(db, quiz_ids)
    db.query(Quiz).filter(Quiz.id.in_(quiz_ids)).delete(synchronize_session=False)


def _load_quiz_tree(db: Session, quiz_id: int) -> Optional[Quiz]:
    return (
        db.query(Quiz)
        .options(selectinload(Quiz.questions).selectinload(Question.answers))
        .populate_existing()
        .filter(Quiz.id == quiz_id)
        .first()
    )


def _find_owned_quiz(db: Session, quiz_id: int, user_id: Optional[int]) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFoundError("Quiz not found")
    if user_id is None or quiz.owner_user_id != user_id:
        raise ForbiddenError("Forbidden")
    return quiz


def quiz_to_out(quiz: Quiz) -> QuizOut:
    return QuizOut(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        image=quiz.image,
        is_public=quiz.is_public,
        owner_user_id=quiz.owner_user_id,
        created_at=quiz.created_at,
        updated_at=quiz.updated_at,
        questions=[
            QuestionOut(
                id=q.id,
                quiz_id=q.quiz_id,
                statement=q.statement,
                points=q.points,
                time_limit_s=q.time_limit_s,
                position=q.position,
                type=q.type,
                answers=[
                    AnswerOut(id=a.id, question_id=a.question_id, text=a.text, is_correct=a.is_correct)
                    for a in q.answers
                ],
            )
            for q in quiz.questions
        ],
    )


def get_quiz_logic(db: Session, quiz_id: int) -> QuizOut:
    """Fetch a quiz tree: questions by position, answers by id.

    Any authenticated caller may read any quiz; visibility only filters
    the public listing.
    """
    quiz = _load_quiz_tree(db, quiz_id)
    if not quiz:
        raise NotFoundError("Quiz not found")
    return quiz_to_out(quiz)


def create_quiz_logic(db: Session, payload: Any, user_id: Optional[int]) -> QuizOut:
    """Create a quiz with its questions and answers in one transaction.

    Args:
        db (Session): Database session
        payload (Any): Quiz tree as sent by the client
        user_id (Optional[int]): Requesting account. When absent, the
            payload's ``owner_user_id`` is used instead.

    Raises:
        ValidationError: Payload is structurally invalid or has no owner
        NotFoundError: The owner account does not exist
        ServerError: The store rejected a write; nothing was committed

    Returns:
        QuizOut: The tree as re-read from the store
    """
    with _transaction(db, "create quiz"):
        validate_quiz_payload(payload)

        owner_id = user_id if user_id is not None else payload.get("owner_user_id")
        if owner_id is None:
            raise ValidationError("owner_user_id is required")
        if isinstance(owner_id, bool) or not isinstance(owner_id, int):
            raise ValidationError("owner_user_id must be an integer")
        if not db.query(User.id).filter(User.id == owner_id).first():
            raise NotFoundError("Owner not found")

        is_public = payload.get("is_public")
        now = datetime.now()
        quiz = Quiz(
            title=payload["title"],
            description=payload.get("description") or None,
            image=payload.get("image") or None,
            is_public=True if is_public is None else bool(is_public),
            owner_user_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        db.add(quiz)
        db.flush()

        _add_questions(db, quiz.id, payload["questions"])
        quiz_id = quiz.id

    log.info("Quiz %s created by user %s with %d question(s)", quiz_id, owner_id, len(payload["questions"]))
    return get_quiz_logic(db, quiz_id)


def replace_quiz_logic(db: Session, quiz_id: int, payload: Any, user_id: Optional[int]) -> QuizOut:
    """Replace a quiz's scalar fields and its whole question/answer set.

    Existing questions and answers are deleted and recreated from the
    payload, so their ids change on every save.

    Raises:
        NotFoundError: No such quiz
        ForbiddenError: The requester does not own the quiz
        ValidationError: Payload is structurally invalid
        ServerError: The store rejected a write; the quiz is left as it was
    """
    with _transaction(db, "update quiz"):
        quiz = _find_owned_quiz(db, quiz_id, user_id)
        validate_quiz_payload(payload)

        is_public = payload.get("is_public")
        quiz.title = payload["title"]
        quiz.description = payload.get("description") or None
        quiz.image = payload.get("image") or quiz.image
        quiz.is_public = quiz.is_public if is_public is None else bool(is_public)
        quiz.updated_at = datetime.now()

        _delete_questions(db, [quiz.id])
        _add_questions(db, quiz.id, payload["questions"])

    log.info("Quiz %s replaced by user %s", quiz_id, user_id)
    return get_quiz_logic(db, quiz_id)


def delete_quiz_logic(db: Session, quiz_id: int, user_id: Optional[int]) -> Dict[str, bool]:
    with _transaction(db, "delete quiz"):
        quiz = _find_owned_quiz(db, quiz_id, user_id)
        delete_quiz_trees(db, [quiz.id])
        db.expunge(quiz)

    log.info("Quiz %s deleted by user %s", quiz_id, user_id)
    return {"ok": True}


def set_visibility_logic(db: Session, quiz_id: int, is_public: bool) -> VisibilityOut:
    # no ownership check: any authenticated caller may toggle visibility
    with _transaction(db, "update quiz visibility"):
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")
        quiz.is_public = bool(is_public)
        quiz.updated_at = datetime.now()

    return VisibilityOut(id=quiz.id, is_public=quiz.is_public)


def list_quizzes_logic(
    db: Session, scope: Optional[str], user_id: Optional[int], search: Optional[str] = None
) -> List[QuizSummaryOut]:
    """List quiz summaries, newest first.

    ``scope="mine"`` keeps the requester's quizzes, ``scope="public"`` keeps
    public ones, anything else lists everything. ``search`` matches title or
    description, case-insensitively.
    """
    query = db.query(Quiz)
    if scope == SCOPE_MINE and user_id is not None:
        query = query.filter(Quiz.owner_user_id == user_id)
    elif scope == SCOPE_PUBLIC:
        query = query.filter(Quiz.is_public.is_(True))

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Quiz.title.ilike(pattern), Quiz.description.ilike(pattern)))

    rows = query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
    return [
        QuizSummaryOut(
            id=r.id,
            title=r.title,
            description=r.description,
            is_public=r.is_public,
            owner_user_id=r.owner_user_id,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )
        for r in rows
    ]
