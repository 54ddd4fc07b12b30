from fastapi import FastAPI, Depends, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import os
from pathlib import Path

from levelup.database import engine, get_db, Base, SessionLocal
from levelup import models  # Import all models to register them with Base
from levelup.schemas import (
    UserCreate, UserUpdate, UserResponse, LeaderboardEntry, XpProgressResponse,
    CategoryResponse,
    GoalTemplateCreate, GoalTemplateResponse, XpPreviewResponse,
    UserGoalCreate, UserGoalSchedule, UserGoalResponse,
    CompletionResponse, CompletionHistoryEntry,
    PriorityResponse, PriorityOrderUpdate, PriorityOrderResponse,
    OnboardingQuestionsResponse, OnboardingSubmission, OnboardingResultResponse
)
from levelup.auth import verify_api_key
from levelup.exceptions import LevelUpException, InvariantViolationException
from levelup.repositories.user_repository import CategoryRepository
from levelup.services.user_service import UserService
from levelup.services.priority_service import PriorityService
from levelup.services.onboarding_service import OnboardingService
from levelup.services.goal_service import GoalTemplateService, UserGoalService
from levelup.scheduler import start_scheduler, stop_scheduler
from levelup.seed import seed_reference_data
from levelup.constants import (
    DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV, CORS_ALLOWED_ORIGINS,
    SCHEDULER_ENABLED, DEFAULT_LANGUAGE, GOAL_STATUS_ACTIVE,
    LEADERBOARD_DEFAULT_LIMIT, MAX_PAGE_LIMIT, MIN_ONBOARDING_ANSWERS
)

LOG_DIR = os.getenv("LEVELUP_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("LEVELUP_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("levelup")

app = FastAPI(
    title="LevelUp API",
    description="Gamified goal tracker with XP levels and priority bonuses",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LevelUpException)
async def levelup_exception_handler(request: Request, exc: LevelUpException):
    if isinstance(exc, InvariantViolationException):
        logger.error(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


# Startup event
@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_reference_data(db)
    finally:
        db.close()

    logger.info(f"LevelUp API started. Logging to: {log_path}")
    if SCHEDULER_ENABLED:
        start_scheduler()


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down LevelUp API")
    stop_scheduler()


# Health check (no auth required)
@app.get("/")
async def root():
    return {"message": "LevelUp API", "status": "active"}


# Users
@app.post("/api/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
          dependencies=[Depends(verify_api_key)])
def create_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new user"""
    return UserService(db).create_user(user)

@app.get("/api/users/leaderboard", response_model=List[LeaderboardEntry], dependencies=[Depends(verify_api_key)])
def get_leaderboard(
    limit: int = Query(LEADERBOARD_DEFAULT_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db)
):
    """Top users by XP"""
    return UserService(db).get_leaderboard(limit)

@app.get("/api/users/{user_id}", response_model=UserResponse, dependencies=[Depends(verify_api_key)])
def get_user(user_id: int, db: Session = Depends(get_db)):
    """Get a user profile"""
    return UserService(db).get_user(user_id)

@app.patch("/api/users/{user_id}", response_model=UserResponse, dependencies=[Depends(verify_api_key)])
def update_user(user_id: int, user_update: UserUpdate, db: Session = Depends(get_db)):
    """Update username or email"""
    return UserService(db).update_user(user_id, user_update)

@app.get("/api/users/{user_id}/xp", response_model=XpProgressResponse, dependencies=[Depends(verify_api_key)])
def get_xp_progress(user_id: int, db: Session = Depends(get_db)):
    """Level and progress bar data"""
    return UserService(db).get_xp_progress(user_id).as_dict()


# Categories
@app.get("/api/categories", response_model=List[CategoryResponse], dependencies=[Depends(verify_api_key)])
def get_categories(db: Session = Depends(get_db)):
    """Get all goal categories"""
    return CategoryRepository.get_all(db)


# Goal templates
@app.get("/api/goal-templates", response_model=List[GoalTemplateResponse], dependencies=[Depends(verify_api_key)])
def get_goal_templates(
    user_id: Optional[int] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """Template catalog: public templates plus the user's private ones"""
    return GoalTemplateService(db).list_catalog(user_id, category_id)

@app.post("/api/goal-templates", response_model=GoalTemplateResponse, status_code=status.HTTP_201_CREATED,
          dependencies=[Depends(verify_api_key)])
def create_goal_template(template: GoalTemplateCreate, db: Session = Depends(get_db)):
    """Create a goal template"""
    return GoalTemplateService(db).create_template(template)

@app.get("/api/goal-templates/xp-preview", response_model=XpPreviewResponse, dependencies=[Depends(verify_api_key)])
def preview_xp(user_id: int, category_id: int, base_xp: int, db: Session = Depends(get_db)):
    """XP a completion would award with the user's current priorities"""
    return GoalTemplateService(db).preview_xp(user_id, category_id, base_xp)


# User goals
@app.get("/api/users/{user_id}/user-goals", response_model=List[UserGoalResponse],
         dependencies=[Depends(verify_api_key)])
def get_user_goals(
    user_id: int,
    status_filter: str = Query(GOAL_STATUS_ACTIVE, alias="status"),
    db: Session = Depends(get_db)
):
    """List a user's goals (active, archived or all)"""
    return UserGoalService(db).list_user_goals(user_id, status_filter)

@app.post("/api/users/{user_id}/user-goals", response_model=UserGoalResponse, status_code=status.HTTP_201_CREATED,
          dependencies=[Depends(verify_api_key)])
def subscribe_user_goal(user_id: int, goal: UserGoalCreate, db: Session = Depends(get_db)):
    """Subscribe to a template"""
    service = UserGoalService(db)
    return service.describe(service.subscribe(user_id, goal))

@app.get("/api/users/{user_id}/user-goals/history", response_model=List[CompletionHistoryEntry],
         dependencies=[Depends(verify_api_key)])
def get_completion_history(
    user_id: int,
    limit: int = Query(50, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db)
):
    """Most recent goal completions"""
    return UserGoalService(db).get_completion_history(user_id, limit)

@app.patch("/api/users/{user_id}/user-goals/{user_goal_id}/complete", response_model=CompletionResponse,
           dependencies=[Depends(verify_api_key)])
def complete_user_goal(user_id: int, user_goal_id: int, db: Session = Depends(get_db)):
    """Complete a goal for the current period and award XP"""
    return UserGoalService(db).complete(user_id, user_goal_id)

@app.patch("/api/users/{user_id}/user-goals/{user_goal_id}/archive", response_model=UserGoalResponse,
           dependencies=[Depends(verify_api_key)])
def archive_user_goal(user_id: int, user_goal_id: int, db: Session = Depends(get_db)):
    """Archive a goal"""
    service = UserGoalService(db)
    return service.describe(service.archive(user_id, user_goal_id))

@app.patch("/api/users/{user_id}/user-goals/{user_goal_id}/unarchive", response_model=UserGoalResponse,
           dependencies=[Depends(verify_api_key)])
def unarchive_user_goal(user_id: int, user_goal_id: int, db: Session = Depends(get_db)):
    """Reactivate an archived goal"""
    service = UserGoalService(db)
    return service.describe(service.unarchive(user_id, user_goal_id))

@app.patch("/api/users/{user_id}/user-goals/{user_goal_id}/schedule", response_model=UserGoalResponse,
           dependencies=[Depends(verify_api_key)])
def schedule_user_goal(
    user_id: int,
    user_goal_id: int,
    schedule: UserGoalSchedule,
    db: Session = Depends(get_db)
):
    """Change a goal's cadence"""
    service = UserGoalService(db)
    return service.describe(service.schedule(user_id, user_goal_id, schedule.cadence))

@app.delete("/api/users/{user_id}/user-goals/{user_goal_id}", status_code=status.HTTP_204_NO_CONTENT,
            dependencies=[Depends(verify_api_key)])
def delete_user_goal(user_id: int, user_goal_id: int, db: Session = Depends(get_db)):
    """Unsubscribe from a goal"""
    UserGoalService(db).delete(user_id, user_goal_id)


# Priorities
@app.get("/api/users/{user_id}/priorities", response_model=List[PriorityResponse],
         dependencies=[Depends(verify_api_key)])
def get_priorities(user_id: int, db: Session = Depends(get_db)):
    """Ranked category priorities with bonus multipliers"""
    return PriorityService(db).get_priorities(user_id)

@app.put("/api/users/{user_id}/priorities/order", response_model=PriorityOrderResponse,
         dependencies=[Depends(verify_api_key)])
def reorder_priorities(user_id: int, order: PriorityOrderUpdate, db: Session = Depends(get_db)):
    """Replace priorities from a manual ordering"""
    service = PriorityService(db)
    ranks = service.reorder(user_id, order.ordered_category_ids)
    return {
        "user_id": user_id,
        "ranks": ranks,
        "priorities": service.get_priorities(user_id)
    }


# Onboarding
@app.get("/api/onboarding/questions", response_model=OnboardingQuestionsResponse,
         dependencies=[Depends(verify_api_key)])
def get_onboarding_questions(
    user_id: int,
    language: str = Query(DEFAULT_LANGUAGE, alias="lang"),
    db: Session = Depends(get_db)
):
    """Questionnaire for a user who has not onboarded yet"""
    questions = OnboardingService(db).get_questions(user_id, language)
    return {
        "language": language,
        "min_answers": MIN_ONBOARDING_ANSWERS,
        "items": [
            {
                "id": q.id,
                "code": q.code,
                "language": q.language,
                "question": q.text,
                "sort_order": q.sort_order
            }
            for q in questions
        ]
    }

@app.post("/api/onboarding/answers", response_model=OnboardingResultResponse,
          dependencies=[Depends(verify_api_key)])
def submit_onboarding_answers(submission: OnboardingSubmission, db: Session = Depends(get_db)):
    """Score the questionnaire and store the user's priorities"""
    priorities = OnboardingService(db).submit_answers(
        submission.user_id, submission.language, submission.answers
    )
    return {
        "user_id": submission.user_id,
        "onboarding_done": True,
        "priorities": priorities
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("levelup.main:app", host="0.0.0.0", port=8000, reload=False)
