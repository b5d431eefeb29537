from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from quizhub.database.base_class import Base

DEFAULT_POINTS = 1000
DEFAULT_TIME_LIMIT_S = 30
DEFAULT_QUESTION_TYPE = "multiple_choice"


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)

    # attributes
    statement = Column(Text, nullable=False)
    points = Column(Integer, default=DEFAULT_POINTS, nullable=False)
    time_limit_s = Column(Integer, default=DEFAULT_TIME_LIMIT_S, nullable=False)
    position = Column(Integer, default=1, nullable=False)
    type = Column(String(50), default=DEFAULT_QUESTION_TYPE, nullable=False)

    # relationship
    quiz = relationship("Quiz", back_populates="questions")
    answers = relationship(
        "Answer",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Answer.id",
    )
