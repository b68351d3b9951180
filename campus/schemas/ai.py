from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from campus.services.recommendations import Difficulty

class RecommendationRequest(BaseModel):
    interests: List[str] = []
    difficulty: Optional[Difficulty] = None
    academic_background: Optional[str] = Field(default=None, max_length=500)
    max_results: int = Field(default=10, ge=1, le=50)

class RecommendedCourse(BaseModel):
    course_id: int
    course_code: str
    course_name: str
    description: str
    credits: int
    match_score: float
    reasons: List[str]

class RecommendationResponse(BaseModel):
    recommendations: List[RecommendedCourse]
    total_recommendations: int
    advisor_note: str
    is_fallback: bool
    generated_at: datetime

class FeedbackRequest(BaseModel):
    assignment_id: int
    submission_content: str = Field(min_length=1)
    rubric: Optional[str] = None

class FeedbackResponse(BaseModel):
    assignment_id: int
    feedback: str
    is_fallback: bool
    generated_at: datetime
