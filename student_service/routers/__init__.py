from .dashboard import router as dashboard_router
from .enrollments import router as enrollments_router
from .quizzes import router as quizzes_router

__all__ = ["dashboard_router", "enrollments_router", "quizzes_router"]
