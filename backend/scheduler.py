import os
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from tasks.eod_tasks import run_eod_tasks

scheduler = BackgroundScheduler()

# Nightly balance recalculation, 11:00 PM in the application timezone
scheduler.add_job(
    run_eod_tasks,
    CronTrigger(hour=23, minute=0, timezone=os.getenv("APP_TIMEZONE", "Asia/Kolkata")),
    id='eod_tasks_job'
)
