# formcoach/backend/models.py
from pydantic import BaseModel, Field
from typing import List, Optional

FALLBACK_MESSAGE = "AI coach is temporarily unavailable, keep going!"


class AdvisoryPayload(BaseModel):
    """Compact form context sent to the coach. Raw keypoints are never included."""
    exercise: str                      # e.g. "squat"
    exercise_name: Optional[str] = None
    phase: str
    form_issues: List[str] = Field(default_factory=list)
    is_correct: bool
    rep_complete: bool = False
    rep_count: int = 0


class CoachingResponse(BaseModel):
    exercise: str
    main_issue: Optional[str] = None
    severity: str = "none"
    message: str


class JointConstraintInfo(BaseModel):
    joint: str
    up: float
    down: float
    tolerance: float


class ExerciseInfo(BaseModel):
    id: str
    name: str
    primary_joint: str
    up: float
    down: float
    tolerance: float
    secondary: Optional[JointConstraintInfo] = None


class ConnectionTestRequest(BaseModel):
    message: str


class ConnectionTestResponse(BaseModel):
    reply: str
