from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from tasks.eod_tasks import reset_today_cash
from utils.timeutils import get_timezone

scheduler = BackgroundScheduler()

# Every day at midnight in the business timezone
scheduler.add_job(reset_today_cash, CronTrigger(hour=0, minute=0, timezone=get_timezone()), id='reset_today_cash_job')
