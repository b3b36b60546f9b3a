from datetime import datetime, timedelta
from typing import Optional


def next_run_time(hour: int = 8, minute: int = 0, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    run = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if run <= now:
        run += timedelta(days=1)
    return run


def seconds_until(run: datetime, now: Optional[datetime] = None) -> float:
    now = now or datetime.now()
    return max(0.0, (run - now).total_seconds())
