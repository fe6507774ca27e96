# models/quiz.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Dict, Any
from datetime import datetime

from student_service.utils.scoring import clamp_score
from student_service.utils.timestamps import to_datetime

class QuizQuestion(BaseModel):
    text: str = ""
    options: List[str] = Field(default_factory=list)
    correct_answer: Optional[str] = Field(None, exclude=True)  # never sent to students
    points: int = 1

class Quiz(BaseModel):
    id: str
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    teacher_id: Optional[str] = None
    title: str = "Untitled Quiz"
    description: Optional[str] = None
    is_published: bool = False
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    time_limit: Optional[int] = None  # minutes
    questions: List[QuizQuestion] = Field(default_factory=list)
    enrolled_students: List[str] = Field(default_factory=list)

    @field_validator("due_date", "created_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, v):
        return to_datetime(v)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v):
        return v or "Untitled Quiz"

    @field_validator("questions", "enrolled_students", mode="before")
    @classmethod
    def default_list(cls, v):
        return v or []

    @field_validator("is_published", mode="before")
    @classmethod
    def default_flag(cls, v):
        return bool(v)

class QuizResult(BaseModel):
    id: str
    student_id: str
    quiz_id: str
    score: float = 0
    submitted_at: Optional[datetime] = None
    quiz_title: Optional[str] = None
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    correct_answers: int = 0
    total_questions: int = 0

    @field_validator("submitted_at", mode="before")
    @classmethod
    def normalize_timestamp(cls, v):
        return to_datetime(v)

    @field_validator("score", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_score(v)

    @field_validator("correct_answers", "total_questions", mode="before")
    @classmethod
    def default_count(cls, v):
        return v or 0

class QuizSubmission(BaseModel):
    answers: List[Optional[str]]  # index-aligned with questions, None = unanswered

class QuizScore(BaseModel):
    result_id: str
    quiz_id: str
    student_id: str
    score: int
    passed: bool
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    unanswered_questions: int
    submitted_at: datetime
    answers_feedback: List[Dict[str, Any]] = Field(default_factory=list)
