"""Heuristic course recommendations.

Scores are a ranking aid only. They are not persisted and carry a random
jitter term, so two calls with the same input may order near-ties
differently. Pass a seeded ``random.Random`` to get repeatable output.
"""
import enum
import logging
import random
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from campus.models.course import Course
from campus.models.enrollment import Enrollment, EnrollmentStatus
from campus.services.text_generation import generate_text

logger = logging.getLogger(__name__)

INTEREST_WEIGHT = 20
DIFFICULTY_WEIGHT = 15
BACKGROUND_WEIGHT = 25
PREREQUISITE_WEIGHT = 10
JITTER_RANGE = 10

DEFAULT_MAX_RESULTS = 10
MAX_RESULTS_LIMIT = 50

FALLBACK_ADVICE = (
    "Balance your semester with one course that builds on what you have "
    "already completed and one that explores a new interest."
)


class Difficulty(enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Inclusive credit ranges for each difficulty tier
CREDIT_BUCKETS = {
    Difficulty.BEGINNER: (1, 2),
    Difficulty.INTERMEDIATE: (3, 4),
    Difficulty.ADVANCED: (5, 6),
}


@dataclass(frozen=True)
class RecommendationPreferences:
    interests: FrozenSet[str] = frozenset()
    difficulty: Optional[Difficulty] = None
    academic_background: Optional[str] = None
    max_results: int = DEFAULT_MAX_RESULTS

    def __post_init__(self):
        if not 1 <= self.max_results <= MAX_RESULTS_LIMIT:
            raise ValueError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}")


@dataclass
class ScoredCourse:
    course: object
    score: float
    reasons: List[str] = field(default_factory=list)


def difficulty_for_credits(credits: int) -> Optional[Difficulty]:
    for difficulty, (low, high) in CREDIT_BUCKETS.items():
        if low <= credits <= high:
            return difficulty
    return None


def score_course(course, enrolled_codes: Sequence[str], preferences: RecommendationPreferences,
                 rng: random.Random) -> ScoredCourse:
    description = (course.description or "").lower()
    haystack = f"{course.title} {course.description or ''} {course.code}".lower()
    score = 0.0
    reasons = []

    matched = sorted(i for i in preferences.interests if i and i.lower() in haystack)
    if matched:
        score += INTEREST_WEIGHT * len(matched)
        reasons.append(f"Matches your interests: {', '.join(matched)}")

    if preferences.difficulty and difficulty_for_credits(course.credits) == preferences.difficulty:
        score += DIFFICULTY_WEIGHT
        reasons.append(f"Fits a {preferences.difficulty.value} workload")

    background = (preferences.academic_background or "").strip().lower()
    if background and background in description:
        score += BACKGROUND_WEIGHT
        reasons.append("Builds on your academic background")

    if any(code and code.lower() in description for code in enrolled_codes):
        score += PREREQUISITE_WEIGHT
        reasons.append("Follows on from a course you have taken")

    score += rng.random() * JITTER_RANGE
    return ScoredCourse(course=course, score=round(score, 2), reasons=reasons)


def rank_courses(candidates: Iterable, enrolled: Iterable, preferences: RecommendationPreferences,
                 rng: Optional[random.Random] = None) -> List[ScoredCourse]:
    """Score every candidate and return the best ``preferences.max_results``."""
    rng = rng or random.Random()
    enrolled_codes = [course.code for course in enrolled]
    scored = [score_course(course, enrolled_codes, preferences, rng) for course in candidates]
    scored.sort(key=lambda item: item.score, reverse=True)
    return scored[:preferences.max_results]


def recommend_courses(db: Session, student, preferences: RecommendationPreferences,
                      rng: Optional[random.Random] = None):
    enrollments = db.query(Enrollment).filter(Enrollment.student_id == student.id).all()
    taken_ids = {e.course_id for e in enrollments}
    enrolled = [
        e.course for e in enrollments
        if e.status in (EnrollmentStatus.ENROLLED, EnrollmentStatus.COMPLETED)
    ]

    query = db.query(Course).filter(Course.is_active.is_(True))
    if taken_ids:
        query = query.filter(Course.id.notin_(taken_ids))
    candidates = query.order_by(Course.code).all()

    ranked = rank_courses(candidates, enrolled, preferences, rng)
    logger.info("Ranked %d of %d candidate courses for student %s", len(ranked), len(candidates), student.id)

    prompt = (
        f"As an academic advisor, suggest how {student.full_name} should choose between these courses: "
        f"{', '.join(item.course.title for item in ranked) or 'none available'}. "
        f"Completed or current courses: {', '.join(c.title for c in enrolled) or 'none'}. "
        f"Interests: {', '.join(sorted(preferences.interests)) or 'not stated'}. "
        "Answer in at most three sentences."
    )
    advice = generate_text(prompt, FALLBACK_ADVICE, max_tokens=150)
    return ranked, advice
