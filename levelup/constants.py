"""
Application-wide constants.
XP curve, priority bonus table, onboarding gate and runtime defaults.
"""
import os

# === XP CURVE ===
# xp_to_next(level) = floor(XP_LINEAR_FACTOR * level + level ** XP_EXPONENT)
XP_LINEAR_FACTOR = 50
XP_EXPONENT = 1.8
MIN_LEVEL = 1

# === PRIORITY BONUS ===
RANK_BONUS_MULTIPLIERS = {
    1: 1.5,
    2: 1.25,
}
DEFAULT_BONUS_MULTIPLIER = 1.0
MAX_PRIORITY_SCORE = 100.0

# === ONBOARDING ===
MIN_ONBOARDING_ANSWERS = 12
ANSWER_VALUE_MIN = 1
ANSWER_VALUE_MAX = 5
DEFAULT_LANGUAGE = "fr"
SUPPORTED_LANGUAGES = ("fr", "en")

# === GOALS ===
CADENCE_DAILY = "daily"
CADENCE_WEEKLY = "weekly"
CADENCES = (CADENCE_DAILY, CADENCE_WEEKLY)

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"

GOAL_STATUS_ACTIVE = "active"
GOAL_STATUS_ARCHIVED = "archived"
GOAL_STATUS_ALL = "all"

# Base XP suggested for new templates, per category name and cadence
BASE_XP_BY_CATEGORY = {
    "sport": {CADENCE_DAILY: 15, CADENCE_WEEKLY: 45},
    "freelance": {CADENCE_DAILY: 18, CADENCE_WEEKLY: 50},
    "mindset": {CADENCE_DAILY: 12, CADENCE_WEEKLY: 36},
}
DEFAULT_BASE_XP = {CADENCE_DAILY: 12, CADENCE_WEEKLY: 36}

LEADERBOARD_DEFAULT_LIMIT = 10
MAX_PAGE_LIMIT = 100

# === EVENTS (frontend notifications) ===
EVENT_XP_CHANGED = "xp:changed"
EVENT_LEVEL_UP = "level:up"

# === RUNTIME ===
DEFAULT_DATABASE_URL = "sqlite:///./levelup.db"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/levelup"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "LEVELUP_CORS_ORIGINS",
        "http://localhost:3000,http://localhost:3001"
    ).split(",")
    if origin.strip()
]

SCHEDULER_ENABLED = os.getenv("LEVELUP_SCHEDULER_ENABLED", "true").lower() == "true"
ROLLOVER_CRON_MINUTES = "*/5"
