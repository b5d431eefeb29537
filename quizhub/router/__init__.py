from quizhub.router.api.users import router as users_router
from quizhub.router.api.quizz import router as quizz_router

__all__ = [
    "users_router",
    "quizz_router",
]
