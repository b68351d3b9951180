from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campus.core.security.auth import staff_required, student_required
from campus.db.session import get_db
from campus.schemas.ai import (
    FeedbackRequest,
    FeedbackResponse,
    RecommendationRequest,
    RecommendationResponse,
    RecommendedCourse,
)
from campus.services.feedback import assignment_feedback
from campus.services.recommendations import RecommendationPreferences, recommend_courses
from campus.utils.helpers import get_utc_now

router = APIRouter(prefix="/ai", tags=["ai"])

@router.post("/course-recommendations", response_model=RecommendationResponse)
def get_course_recommendations(
    request: RecommendationRequest,
    current_user: dict = Depends(student_required),
    db: Session = Depends(get_db)
):
    preferences = RecommendationPreferences(
        interests=frozenset(i.strip() for i in request.interests if i.strip()),
        difficulty=request.difficulty,
        academic_background=request.academic_background,
        max_results=request.max_results,
    )
    ranked, advice = recommend_courses(db, current_user["user"], preferences)

    recommendations = [
        RecommendedCourse(
            course_id=item.course.id,
            course_code=item.course.code,
            course_name=item.course.title,
            description=item.course.description or "",
            credits=item.course.credits,
            match_score=item.score,
            reasons=item.reasons,
        )
        for item in ranked
    ]
    return RecommendationResponse(
        recommendations=recommendations,
        total_recommendations=len(recommendations),
        advisor_note=advice.text,
        is_fallback=advice.is_fallback,
        generated_at=get_utc_now(),
    )

@router.post("/assignment-feedback", response_model=FeedbackResponse)
def get_assignment_feedback(
    request: FeedbackRequest,
    current_user: dict = Depends(staff_required),
    db: Session = Depends(get_db)
):
    result = assignment_feedback(
        db, request.assignment_id, request.submission_content, current_user["user"], request.rubric
    )
    return FeedbackResponse(
        assignment_id=request.assignment_id,
        feedback=result.text,
        is_fallback=result.is_fallback,
        generated_at=get_utc_now(),
    )
