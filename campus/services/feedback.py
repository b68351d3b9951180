import logging
from typing import Optional

from sqlalchemy.orm import Session

from campus.core.exceptions import NotFoundError
from campus.core.permissions import authorize
from campus.models.assignment import Assignment
from campus.models.user import User
from campus.services.text_generation import GeneratedText, generate_text

logger = logging.getLogger(__name__)

FALLBACK_FEEDBACK = (
    "Automated feedback is currently unavailable. Review the submission "
    "against the assignment rubric and comment on accuracy, completeness "
    "and clarity."
)

# Keeps prompts within the completion service's context window
MAX_CONTENT_CHARS = 6000


def assignment_feedback(db: Session, assignment_id: int, submission_content: str, actor: User,
                        rubric: Optional[str] = None) -> GeneratedText:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise NotFoundError("Assignment not found")
    authorize("assignment:feedback", actor, assignment,
              "You can only request feedback for assignments you created")

    rubric = rubric or assignment.rubric or "No rubric provided"
    prompt = f"""
    You are a teaching assistant reviewing a student submission.
    Assignment: {assignment.title} (max {assignment.max_points} points)
    Instructions: {assignment.instructions or assignment.description or "None"}
    Rubric: {rubric}
    Submission: {submission_content[:MAX_CONTENT_CHARS]}
    List the main strengths, the most important improvements, and a suggested grade.
    """
    result = generate_text(prompt, FALLBACK_FEEDBACK, max_tokens=500)
    logger.info("Feedback for assignment %s generated (fallback=%s)", assignment.id, result.is_fallback)
    return result
