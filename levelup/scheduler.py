"""
Background scheduler for goal period maintenance
Handles:
- Reopening completed goals once their daily/weekly period has ended
"""

import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from levelup.database import SessionLocal
from levelup.constants import ROLLOVER_CRON_MINUTES
from levelup.services.goal_service import UserGoalService

logger = logging.getLogger("levelup.scheduler")


def rollover_goal_periods():
    """Reset completed goals whose period is over"""
    db: Session = SessionLocal()
    try:
        count = UserGoalService(db).rollover_expired()
        if count:
            logger.info(f"Rolled over {count} goal periods")
    except Exception as e:
        db.rollback()
        logger.error(f"Error in rollover_goal_periods: {e}")
    finally:
        db.close()


# Create scheduler instance
scheduler = BackgroundScheduler()


def start_scheduler():
    """Start the background scheduler"""
    logger.info("Starting LevelUp background scheduler")

    scheduler.add_job(
        rollover_goal_periods,
        CronTrigger(minute=ROLLOVER_CRON_MINUTES),
        id='rollover_goal_periods',
        replace_existing=True
    )

    scheduler.start()
    logger.info("Background scheduler started successfully")


def stop_scheduler():
    """Stop the background scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Background scheduler stopped")
