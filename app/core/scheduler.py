from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = BackgroundScheduler(
    timezone=settings.TIMEZONE,
    job_defaults={
        'coalesce': True,
        'max_instances': 1,
        'misfire_grace_time': 300
    }
)


def job_listener(event):
    if event.exception:
        logger.error(f"Job {event.job_id} failed with exception: {event.exception}")
    else:
        logger.info(f"Job {event.job_id} executed successfully")


def run_maintenance_sync_job():
    from app.database import SessionLocal
    from app.tasks.maintenance_sync import sync_all_instances

    logger.info("Starting scheduled maintenance sync...")
    db = SessionLocal()
    try:
        results = sync_all_instances(db)
        logger.info(f"Maintenance sync finished: {results}")
    except Exception as e:
        logger.error(f"Error running scheduled maintenance sync: {e}")
    finally:
        db.close()


def init_scheduler():
    scheduler.add_listener(job_listener, EVENT_JOB_ERROR | EVENT_JOB_EXECUTED)

    interval = settings.MAINTENANCE_SYNC_INTERVAL_MINUTES
    if interval <= 0:
        logger.info("Scheduler initialized without maintenance sync")
        return

    scheduler.add_job(
        run_maintenance_sync_job,
        trigger=IntervalTrigger(minutes=interval),
        id='maintenance_sync',
        name='Opencast Maintenance Sync',
        replace_existing=True
    )

    logger.info(f"Scheduler initialized with maintenance sync every {interval} minutes")


def start_scheduler():
    if not scheduler.running:
        scheduler.start()
        logger.info("Background scheduler started")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=True)
        logger.info("Background scheduler stopped")


def get_scheduled_jobs():
    jobs = []
    for job in scheduler.get_jobs():
        # pending jobs of a stopped scheduler have no next run time yet
        next_run_time = getattr(job, "next_run_time", None)
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run_time": next_run_time.isoformat() if next_run_time else None,
            "trigger": str(job.trigger)
        })
    return jobs
