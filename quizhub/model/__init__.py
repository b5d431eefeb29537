from quizhub.model.users import User
from quizhub.model.quizzes import Quiz
from quizhub.model.questions import Question
from quizhub.model.answers import Answer

__all__ = ["User", "Quiz", "Question", "Answer"]
