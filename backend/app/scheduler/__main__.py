"""Scheduler エントリポイント: python -m app.scheduler で起動"""
import signal
import sys
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.scheduler.dojo_reports import build_dojo_reports
from app.scheduler.email_digests import send_daily_emails, send_weekly_emails

setup_logging(debug=settings.DEBUG, service="scheduler")
logger = get_logger("scheduler")

scheduler = BlockingScheduler(timezone=settings.SCHEDULER_TIMEZONE)


def signal_handler(sig, frame):
    logger.info("Scheduler停止シグナル受信")
    scheduler.shutdown(wait=False)
    sys.exit(0)


signal.signal(signal.SIGTERM, signal_handler)
signal.signal(signal.SIGINT, signal_handler)


def main():
    logger.info("Scheduler起動")
    tz = settings.SCHEDULER_TIMEZONE

    # 毎日: 全ユーザーのDojo Reportを作り直す
    scheduler.add_job(
        build_dojo_reports,
        CronTrigger(hour=settings.SUMMARY_CRON_HOUR, minute=0, timezone=tz),
        id="build_dojo_reports",
        max_instances=1,
    )

    # 毎日: 日次購読者へ配信 (レポート作成後)
    scheduler.add_job(
        send_daily_emails,
        CronTrigger(hour=settings.DIGEST_CRON_HOUR, minute=0, timezone=tz),
        id="send_daily_emails",
        max_instances=1,
    )

    # 月曜: 週次購読者へ配信
    scheduler.add_job(
        send_weekly_emails,
        CronTrigger(day_of_week="mon", hour=settings.DIGEST_CRON_HOUR, minute=30, timezone=tz),
        id="send_weekly_emails",
        max_instances=1,
    )

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler終了")


if __name__ == "__main__":
    main()
