from .course import Course
from .dashboard import ActivityItem, ChartSeries, DerivedStats, PendingQuizView, ResultsHistory, ResultsSummary
from .enrollment import Enrollment, EnrollmentCreate, EnrollmentReview, EnrollmentStatus
from .quiz import Quiz, QuizQuestion, QuizResult, QuizScore, QuizSubmission
from .schemas import Identity, UserRole

__all__ = [
    "Course",
    "ActivityItem", "ChartSeries", "DerivedStats", "PendingQuizView", "ResultsHistory", "ResultsSummary",
    "Enrollment", "EnrollmentCreate", "EnrollmentReview", "EnrollmentStatus",
    "Quiz", "QuizQuestion", "QuizResult", "QuizScore", "QuizSubmission",
    "Identity", "UserRole",
]
