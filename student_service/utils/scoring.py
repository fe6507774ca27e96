import math
from typing import Dict, List, Optional, Sequence

SCORE_BUCKET_LABELS = ["0-20%", "21-40%", "41-60%", "61-80%", "81-100%"]
SCORE_BUCKET_BOUNDS = [20, 40, 60, 80]


def round_half_up(value: float, digits: int = 0):
    """Round halves up (2.5 -> 3, -2.5 -> -2).

    Gives an ``int`` by default, a float rounded to ``digits`` decimals otherwise.
    """
    if digits:
        factor = 10 ** digits
        return math.floor(value * factor + 0.5) / factor
    return int(math.floor(value + 0.5))


def clamp_score(value) -> float:
    if value is None:
        return 0
    return max(0, min(100, value))


def average_score(scores: Sequence[float]) -> int:
    if not scores:
        return 0
    return round_half_up(sum(scores) / len(scores))


def performance_trend(scores: Sequence[float]) -> int:
    """Percent change of the 3 most recent scores against the 3 before them.

    ``scores`` must be ordered most recent first. Fewer than 6 scores, or a
    zero previous average, give 0.
    """
    if len(scores) < 6:
        return 0
    recent = sum(scores[0:3]) / 3
    previous = sum(scores[3:6]) / 3
    if previous == 0:
        return 0
    return round_half_up((recent - previous) / previous * 100)


def score_bucket(score: float) -> int:
    for index, bound in enumerate(SCORE_BUCKET_BOUNDS):
        if score <= bound:
            return index
    return len(SCORE_BUCKET_BOUNDS)


def score_distribution(scores: Sequence[float]) -> List[int]:
    distribution = [0] * len(SCORE_BUCKET_LABELS)
    for score in scores:
        distribution[score_bucket(score)] += 1
    return distribution


def _normalize_answer(answer) -> str:
    return str(answer).strip().lower()


def grade_answers(questions: Sequence, answers: Sequence[Optional[str]],
                  passing_score: int) -> Dict:
    """Grade index-aligned answers against the quiz questions.

    A missing or ``None`` answer counts as unanswered.
    """
    total_questions = len(questions)
    correct_answers = 0
    unanswered = 0
    answers_feedback = []

    for i, question in enumerate(questions):
        user_answer = answers[i] if i < len(answers) else None
        if user_answer is None:
            unanswered += 1
            is_correct = False
        else:
            is_correct = _normalize_answer(user_answer) == _normalize_answer(question.correct_answer)
            if is_correct:
                correct_answers += 1

        answers_feedback.append({
            "question_index": i,
            "question_text": question.text,
            "user_answer": user_answer,
            "correct_answer": question.correct_answer,
            "is_correct": is_correct,
        })

    percentage = round_half_up(correct_answers / total_questions * 100) if total_questions else 0

    return {
        "score": percentage,
        "passed": percentage >= passing_score,
        "total_questions": total_questions,
        "correct_answers": correct_answers,
        "incorrect_answers": total_questions - correct_answers - unanswered,
        "unanswered_questions": unanswered,
        "answers_feedback": answers_feedback,
    }
