from __future__ import annotations

import argparse
import sys
from pathlib import Path

import importlib

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.timeclock.timeclock.container import build_container
from src.timeclock.timeclock.core.enums import DayBucketPolicy


def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute the timesheet of an employee's most recent closed shift.")
    parser.add_argument("employee_id")
    parser.add_argument("company_id")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        day_bucket=DayBucketPolicy(getattr(settings, "TIMESHEET_DAY_BUCKET", DayBucketPolicy.PROCESSING_DAY.value)),
    )

    timesheet = container.aggregator.rebuild_last_shift(args.employee_id, args.company_id)
    if timesheet is None:
        print(f"No closed shift for employee {args.employee_id}")
        sys.exit(1)
    print(
        f"OK: {timesheet.employee_id} {timesheet.work_date.isoformat()} "
        f"hours={timesheet.hours_worked:.3f} breaks={timesheet.break_minutes}m"
    )


if __name__ == "__main__":
    main()
