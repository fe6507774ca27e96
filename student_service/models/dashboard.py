from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from student_service.models.quiz import Quiz, QuizResult
from student_service.utils.scoring import SCORE_BUCKET_LABELS


class ChartSeries(BaseModel):
    label: str
    labels: List[str] = Field(default_factory=list)
    data: List[float] = Field(default_factory=list)


class ActivityItem(BaseModel):
    type: str = "quiz"
    id: str
    title: str
    score: float
    course: str
    date: Optional[datetime] = None


class DerivedStats(BaseModel):
    """Display-ready statistics for one student, recomputed on every load."""
    user_name: str = "Student"
    enrolled_courses: int = 0
    completed_quizzes: int = 0
    pending_quizzes: int = 0
    overdue_quizzes: int = 0
    average_score: int = 0
    highest_score: float = 0
    lowest_score: float = 0
    performance_trend: int = 0
    recent_activity: List[ActivityItem] = Field(default_factory=list)
    upcoming_quizzes: List[Quiz] = Field(default_factory=list)
    performance_data: ChartSeries = Field(
        default_factory=lambda: ChartSeries(label="Quiz Score (%)")
    )
    score_distribution: ChartSeries = Field(
        default_factory=lambda: ChartSeries(
            label="Score Distribution", labels=list(SCORE_BUCKET_LABELS), data=[0] * len(SCORE_BUCKET_LABELS)
        )
    )
    course_distribution: ChartSeries = Field(
        default_factory=lambda: ChartSeries(label="Quizzes per Course")
    )
    course_performance: ChartSeries = Field(
        default_factory=lambda: ChartSeries(label="Average Score by Course")
    )


class PendingQuizView(Quiz):
    due_soon: bool = False
    time_remaining: Optional[str] = None
    question_count: int = 0


class ResultsSummary(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    average: int = 0
    highest_score: float = 0
    lowest_score: float = 0
    improvement: float = 0


class ResultsHistory(BaseModel):
    results: List[QuizResult] = Field(default_factory=list)
    summary: ResultsSummary = Field(default_factory=ResultsSummary)
