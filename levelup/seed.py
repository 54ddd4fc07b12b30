"""
Reference data: categories, onboarding questionnaire and the public template catalog.
Seeding is idempotent; rows are matched by natural key and only missing ones are added.
"""
import logging

from sqlalchemy.orm import Session

from levelup.models import Category, GoalTemplate, OnboardingQuestion, OnboardingQuestionWeight
from levelup.repositories.goal_repository import GoalTemplateRepository
from levelup.repositories.user_repository import CategoryRepository
from levelup.constants import BASE_XP_BY_CATEGORY, DEFAULT_BASE_XP, CADENCE_DAILY, CADENCE_WEEKLY

logger = logging.getLogger("levelup.seed")

CATEGORIES = ["sport", "freelance", "mindset", "health", "learning"]

# code -> (fr text, en text, {category: weight})
QUESTIONS = [
    ("move_daily", "Je veux bouger mon corps chaque jour.",
     "I want to move my body every day.", {"sport": 1.0, "health": 0.5}),
    ("train_goal", "Je veux atteindre un objectif sportif précis.",
     "I want to reach a specific fitness goal.", {"sport": 1.0}),
    ("energy", "Je manque souvent d'énergie.",
     "I often lack energy.", {"health": 1.0, "sport": 0.3}),
    ("sleep", "Je veux mieux dormir.",
     "I want to sleep better.", {"health": 1.0, "mindset": 0.3}),
    ("clients", "Je veux trouver plus de clients.",
     "I want to find more clients.", {"freelance": 1.0}),
    ("income", "Je veux augmenter mes revenus d'indépendant.",
     "I want to grow my freelance income.", {"freelance": 1.0}),
    ("portfolio", "Je veux améliorer mon portfolio.",
     "I want to improve my portfolio.", {"freelance": 0.7, "learning": 0.5}),
    ("stress", "Je veux mieux gérer mon stress.",
     "I want to handle stress better.", {"mindset": 1.0, "health": 0.3}),
    ("focus", "Je veux rester concentré plus longtemps.",
     "I want to stay focused for longer.", {"mindset": 0.8, "learning": 0.4}),
    ("gratitude", "Je veux prendre du recul chaque jour.",
     "I want to step back and reflect every day.", {"mindset": 1.0}),
    ("new_skill", "Je veux apprendre une nouvelle compétence.",
     "I want to learn a new skill.", {"learning": 1.0}),
    ("reading", "Je veux lire davantage.",
     "I want to read more.", {"learning": 0.8, "mindset": 0.3}),
    ("routine", "J'aime suivre une routine.",
     "I like following a routine.", {}),
    ("motivation", "Je suis motivé pour changer maintenant.",
     "I am motivated to change now.", {}),
]

# category -> [(title, description, frequency)]
TEMPLATES = {
    "sport": [
        ("30 minutes of exercise", "Any activity that raises your heart rate.", CADENCE_DAILY),
        ("Long run", "One run of at least 45 minutes.", CADENCE_WEEKLY),
    ],
    "freelance": [
        ("Prospect one client", "Send one tailored proposal or message.", CADENCE_DAILY),
        ("Update portfolio", "Add or polish one project.", CADENCE_WEEKLY),
    ],
    "mindset": [
        ("10 minutes of meditation", None, CADENCE_DAILY),
        ("Weekly review", "Write down wins and lessons of the week.", CADENCE_WEEKLY),
    ],
    "health": [
        ("Drink 2 liters of water", None, CADENCE_DAILY),
        ("Meal prep", "Prepare healthy meals for the coming days.", CADENCE_WEEKLY),
    ],
    "learning": [
        ("Read 20 pages", None, CADENCE_DAILY),
        ("Finish a course module", None, CADENCE_WEEKLY),
    ],
}


def seed_categories(db: Session) -> dict:
    """Ensure all categories exist; returns name -> Category"""
    existing = {c.name: c for c in CategoryRepository.get_all(db)}
    for name in CATEGORIES:
        if name not in existing:
            category = Category(name=name)
            db.add(category)
            existing[name] = category
    db.flush()
    return existing


def seed_questions(db: Session, categories: dict) -> int:
    """Ensure every question exists in every language with its weights"""
    added = 0
    for sort_order, (code, text_fr, text_en, weights) in enumerate(QUESTIONS, start=1):
        for language, text in (("fr", text_fr), ("en", text_en)):
            exists = db.query(OnboardingQuestion).filter(
                OnboardingQuestion.code == code,
                OnboardingQuestion.language == language
            ).first()
            if exists:
                continue
            question = OnboardingQuestion(
                code=code,
                language=language,
                text=text,
                is_active=True,
                sort_order=sort_order
            )
            for category_name, weight in weights.items():
                question.weights.append(OnboardingQuestionWeight(
                    category_id=categories[category_name].id,
                    weight=weight
                ))
            db.add(question)
            added += 1
    return added


def seed_templates(db: Session, categories: dict) -> int:
    """Ensure the public catalog templates exist"""
    added = 0
    for category_name, templates in TEMPLATES.items():
        category = categories[category_name]
        table = BASE_XP_BY_CATEGORY.get(category_name, DEFAULT_BASE_XP)
        for title, description, frequency in templates:
            if GoalTemplateRepository.find_by_title(db, category.id, title):
                continue
            db.add(GoalTemplate(
                category_id=category.id,
                title=title,
                description=description,
                base_xp=table[frequency],
                frequency=frequency,
                enabled=True,
                visibility="public"
            ))
            added += 1
    return added


def seed_reference_data(db: Session) -> None:
    """Seed categories, questions and catalog templates in one transaction"""
    try:
        categories = seed_categories(db)
        questions = seed_questions(db, categories)
        templates = seed_templates(db, categories)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if questions or templates:
        logger.info(f"Seeded {questions} onboarding questions and {templates} templates")
