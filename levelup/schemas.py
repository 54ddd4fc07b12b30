from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Dict, List, Optional


# User schemas
class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=80)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=8, max_length=72)  # bcrypt input limit


class UserUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=80)
    email: Optional[str] = Field(None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    level: int
    xp: int
    onboarding_done: bool
    created_at: datetime

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    id: int
    username: str
    xp: int
    level: int

    class Config:
        from_attributes = True


class XpProgressResponse(BaseModel):
    level: int
    current: int  # XP inside the current level
    span: int     # XP needed to clear the current level
    percent: float
    total_xp: int
    xp_remaining: int


# Category schemas
class CategoryResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


# Goal template schemas
class GoalTemplateCreate(BaseModel):
    category_id: int
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    base_xp: Optional[int] = Field(None, ge=0, le=10000)  # None = suggested from category/cadence
    frequency: str = Field(default="daily", pattern="^(daily|weekly)$")
    enabled: bool = True
    visibility: str = Field(default="public", pattern="^(public|private)$")
    owner_user_id: Optional[int] = None


class GoalTemplateResponse(BaseModel):
    id: int
    category_id: int
    title: str
    description: Optional[str]
    base_xp: int
    frequency: str
    enabled: bool
    visibility: str
    owner_user_id: Optional[int]
    created_at: datetime

    class Config:
        from_attributes = True


class XpPreviewResponse(BaseModel):
    category_id: int
    base_xp: int
    rank: Optional[int]
    multiplier: float
    effective_xp: int


# User goal schemas
class UserGoalCreate(BaseModel):
    template_id: int
    cadence: Optional[str] = Field(None, pattern="^(daily|weekly)$")  # None = template frequency
    xp_reward_override: Optional[int] = Field(None, ge=0, le=10000)


class UserGoalSchedule(BaseModel):
    cadence: str = Field(..., pattern="^(daily|weekly)$")


class UserGoalResponse(BaseModel):
    id: int
    user_id: int
    template_id: int
    title: str
    description: Optional[str]
    category_id: int
    category_name: Optional[str]
    cadence: str
    active: bool
    completed: bool
    can_complete: bool
    due_date: Optional[datetime]
    last_completed_at: Optional[datetime]
    base_xp: int
    xp_reward_override: Optional[int]
    rank: Optional[int]
    effective_xp: int


class CompletionResponse(BaseModel):
    user_goal_id: int
    gained_xp: int
    base_xp: int
    multiplier: float
    new_total_xp: int
    new_level: int
    leveled_up: bool
    levels_gained: int
    progress: XpProgressResponse
    events: List[str]


# Priority schemas
class PriorityResponse(BaseModel):
    category_id: int
    category_name: str
    score: float
    rank: int
    multiplier: float


class PriorityOrderUpdate(BaseModel):
    ordered_category_ids: List[int] = Field(..., min_length=1)


class PriorityOrderResponse(BaseModel):
    user_id: int
    ranks: Dict[int, int]  # category_id -> rank
    priorities: List[PriorityResponse]


# Onboarding schemas
class OnboardingQuestionResponse(BaseModel):
    id: int
    code: str
    language: str
    question: str
    sort_order: int


class OnboardingQuestionsResponse(BaseModel):
    language: str
    min_answers: int
    items: List[OnboardingQuestionResponse]


class AnswerIn(BaseModel):
    question_id: int = Field(..., ge=1)
    value: int = Field(..., ge=1, le=5)


class OnboardingSubmission(BaseModel):
    user_id: int
    language: str = Field(default="fr", pattern="^(fr|en)$")
    answers: List[AnswerIn]


class OnboardingResultResponse(BaseModel):
    user_id: int
    onboarding_done: bool
    priorities: List[PriorityResponse]


class CompletionHistoryEntry(BaseModel):
    id: int
    user_goal_id: int
    period_start: date
    base_xp: int
    multiplier: float
    xp_awarded: int
    completed_at: datetime

    class Config:
        from_attributes = True
