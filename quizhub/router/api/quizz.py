from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from openai import OpenAI
from sqlalchemy.orm import Session

from quizhub.database import get_db
from quizhub.model.users import User
from quizhub.router.api.logics.ai_logic import generate_question_logic, get_ai_client
from quizhub.router.api.logics.quiz_logic import (
    create_quiz_logic,
    delete_quiz_logic,
    get_quiz_logic,
    list_quizzes_logic,
    replace_quiz_logic,
    set_visibility_logic,
)
from quizhub.router.dependencies import get_current_user
from quizhub.schema.quiz_schema import (
    GenerateAIRequest,
    QuizOut,
    QuizSummaryOut,
    VisibilityIn,
    VisibilityOut,
)

router = APIRouter()


@router.get("", response_model=List[QuizSummaryOut], status_code=status.HTTP_200_OK)
async def list_quizzes(
    scope: Optional[str] = Query(None, description="mine | public; anything else lists all"),
    search: Optional[str] = Query(None, description="matches title or description"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return list_quizzes_logic(db, scope, user.id, search)


@router.post("", response_model=QuizOut, status_code=status.HTTP_201_CREATED)
async def create_quiz(
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a quiz with its questions and answers in one transaction.

    The body is checked by the structural validator rather than by a
    pydantic model, so shape errors come back as 400 with a short message.
    """
    return create_quiz_logic(db, payload, user.id)


@router.post("/generate-ai", status_code=status.HTTP_200_OK)
def generate_ai_question(
    request: GenerateAIRequest,
    user: User = Depends(get_current_user),
    client: OpenAI = Depends(get_ai_client),
):
    """Ask the AI for one more question. Returns the whole quiz, nothing is saved."""
    return generate_question_logic(client, request.trivia, request.context)


@router.get("/{quiz_id}", response_model=QuizOut, status_code=status.HTTP_200_OK)
async def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_quiz_logic(db, quiz_id)


@router.put("/{quiz_id}", response_model=QuizOut, status_code=status.HTTP_200_OK)
async def replace_quiz(
    quiz_id: int,
    payload: Any = Body(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Replace the quiz and its whole question set. Owner only."""
    return replace_quiz_logic(db, quiz_id, payload, user.id)


@router.patch("/{quiz_id}/public", response_model=VisibilityOut, status_code=status.HTTP_200_OK)
async def set_public_flag(
    quiz_id: int,
    request: VisibilityIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return set_visibility_logic(db, quiz_id, request.is_public)


@router.delete("/{quiz_id}", response_model=dict, status_code=status.HTTP_200_OK)
async def delete_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Delete the quiz with its questions and answers. Owner only."""
    return delete_quiz_logic(db, quiz_id, user.id)
