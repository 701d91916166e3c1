# scripts/run_reminders.py
"""
Operator entry point for the SMS reminder scheduler.
Usage:
  python -m scripts.run_reminders              # run the scheduler until Ctrl+C
  python -m scripts.run_reminders --once       # one cycle, prints the JSON summary
  python -m scripts.run_reminders --upcoming --hours 48
  python -m scripts.run_reminders --send-now A1b2c3d4
  python -m scripts.run_reminders --export
"""
import argparse
import json
import logging
import time
from dotenv import load_dotenv

load_dotenv()

from backend.agents.reminder_agent import reminder_agent
from backend.scheduler import ReminderScheduler
from backend.services.export_service import ExportService
from backend.utils.config import config

logger = logging.getLogger("scripts.run_reminders")

def _print(payload):
    print(json.dumps(payload, indent=2, ensure_ascii=False))

def main(argv=None):
    p = argparse.ArgumentParser(description="SMS appointment reminders")
    p.add_argument("--once", action="store_true", help="run a single cycle and exit")
    p.add_argument("--upcoming", action="store_true", help="list reminders still to be sent")
    p.add_argument("--hours", type=int, default=48, help="look-ahead for --upcoming/--export")
    p.add_argument("--send-now", metavar="APPOINTMENT_ID", help="send a reminder for one appointment immediately")
    p.add_argument("--export", action="store_true", help="export upcoming reminders to Excel")
    p.add_argument("--interval", type=int, default=None, help="scan interval in minutes")
    p.add_argument("--no-delay", action="store_true", help="skip the pause between messages")
    p.add_argument("--log-level", default="INFO")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not config.validate_config():
        return 1

    if args.no_delay:
        reminder_agent.send_delay_seconds = 0

    if args.send_now:
        result = reminder_agent.send_immediate(args.send_now)
        _print(result)
        return 0 if result.get("success") else 1

    if args.upcoming:
        _print(reminder_agent.get_upcoming_reminders(hours_ahead=args.hours))
        return 0

    if args.export:
        path = ExportService(reminder_agent=reminder_agent).export_upcoming_reminders(hours_ahead=args.hours)
        print(path or "Nothing to export.")
        return 0

    scheduler = ReminderScheduler(agent=reminder_agent, interval_minutes=args.interval)

    if args.once:
        summary = scheduler.run_cycle()
        _print(summary.to_dict())
        return 1 if summary.error else 0

    scheduler.start()
    # first scan right away rather than one interval from now
    scheduler.run_cycle()
    try:
        while True:
            time.sleep(1)
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down reminder scheduler")
    finally:
        scheduler.shutdown()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
