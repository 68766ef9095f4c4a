"""
Background zakat reminder job using APScheduler.
Runs daily, refreshes zakat eligibility, emails every user whose reminder is
due and moves the reminder past the run date once delivered.
"""

import time
import logging
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from dotenv import load_dotenv

from config import get_settings
from db_engine import init_db
from errors import UpstreamError
from repositories import UserRepository
from services.gold_price import GoldPriceService, get_price_service
from services.notification import EmailService
from services.zakat import REQUIRED_DAYS, ZakatService, calculate_zakat_due

logger = logging.getLogger(__name__)


def next_reminder_after(reminder_date: datetime, now: datetime) -> datetime:
    """Step a reminder forward by whole lunar years until it lies after now."""
    step = timedelta(days=REQUIRED_DAYS)
    next_date = reminder_date + step
    while next_date <= now:
        next_date += step
    return next_date


def send_due_reminders(
    email_service: Optional[EmailService] = None,
    price_service: Optional[GoldPriceService] = None,
    now: Optional[datetime] = None
) -> int:
    """
    Deliver every due zakat reminder.

    Records at or above nisab are recomputed first so holdings that matured
    since the last transaction become eligible. A reminder is advanced past
    now only after its email was sent, so failed deliveries are retried on
    the next run.

    Returns:
        Number of reminders delivered
    """
    now = now or datetime.now()
    email_service = email_service or EmailService()
    price_service = price_service or get_price_service()

    ZakatService.refresh_zakat_statuses(now)
    due = ZakatService.get_users_for_zakat_reminder(now)
    if not due:
        logger.info("No zakat reminders due.")
        return 0

    try:
        quote = price_service.get_price_with_refresh()
    except UpstreamError as e:
        logger.error(f"Skipping {len(due)} zakat reminders, gold price unavailable: {e}")
        return 0

    logger.info(f"Sending {len(due)} zakat reminders at ${quote.price_per_gram_usd}/g")
    delivered = 0

    for record in due:
        user = UserRepository.get_by_id(record.user_id)
        if user is None:
            logger.warning(f"Zakat record {record.id} has no user {record.user_id}, skipping...")
            continue

        sent = email_service.send_zakat_reminder(
            to_email=user.email,
            name=user.name,
            gold_weight_grams=record.gold_weight_grams,
            price_per_gram=quote.price_per_gram_usd,
            zakat_due=calculate_zakat_due(record.gold_weight_grams, quote.price_per_gram_usd),
            holding_start_date=record.holding_start_date
        )
        if not sent:
            logger.warning(f"Zakat reminder to {user.email} not delivered, will retry next run")
            continue

        next_date = next_reminder_after(record.next_reminder_date, now)
        ZakatService.update_next_reminder_date(record.id, next_date, now=now)
        delivered += 1

    logger.info(f"Zakat reminder run complete. Delivered: {delivered}/{len(due)}")
    return delivered


def start_monitor_scheduler() -> BackgroundScheduler:
    """
    Start the background scheduler for zakat reminders.
    Runs once a day at the configured hour.
    """
    settings = get_settings()
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        send_due_reminders,
        trigger=CronTrigger(hour=settings.reminder_check_hour, minute=0),
        id='zakat_reminder_check',
        name='Zakat Reminder Check',
        replace_existing=True
    )

    logger.info("Running initial zakat reminder check on startup...")
    send_due_reminders()

    scheduler.start()
    logger.info(f"Zakat reminder scheduler started. Running daily at {settings.reminder_check_hour:02d}:00.")

    return scheduler


if __name__ == "__main__":
    import sys

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    init_db()

    if len(sys.argv) > 1 and sys.argv[1] == "--once":
        send_due_reminders()
    else:
        scheduler = start_monitor_scheduler()
        try:
            print("GoldKeeper zakat reminder monitor is running. Press Ctrl+C to stop.")
            while True:
                time.sleep(1)
        except (KeyboardInterrupt, SystemExit):
            logger.info("Shutting down zakat reminder monitor...")
            scheduler.shutdown()
            logger.info("Zakat reminder monitor stopped.")
