from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


##############
### Answer ###
##############
class AnswerOut(BaseModel):
    id: int
    question_id: int
    text: str
    is_correct: bool


################
### Question ###
################
class QuestionOut(BaseModel):
    id: int
    quiz_id: int
    statement: str
    points: int
    time_limit_s: int
    position: int
    type: str
    answers: List[AnswerOut]


############
### Quiz ###
############
class QuizOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    image: Optional[str] = None
    is_public: bool
    owner_user_id: int
    created_at: datetime
    updated_at: datetime
    questions: List[QuestionOut]


class QuizSummaryOut(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    is_public: bool
    owner_user_id: int
    created_at: datetime
    updated_at: datetime


class VisibilityIn(BaseModel):
    is_public: bool = False


class VisibilityOut(BaseModel):
    id: int
    is_public: bool


class GenerateAIRequest(BaseModel):
    trivia: Dict[str, Any] = {}
    context: str = ""
