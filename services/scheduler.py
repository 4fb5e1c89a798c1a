"""Daily background jobs: motivational pushes and retried coach purges."""

import asyncio
from datetime import datetime, time, timedelta
from typing import Awaitable, Callable, List, Optional

from config.settings import settings
from utils.helpers import utc_now
from utils.logger import setup_logger

logger = setup_logger(__name__)


def parse_times(values: List[str]) -> List[time]:
    """``HH:MM`` strings to sorted times; malformed entries are dropped."""
    parsed = []
    for value in values:
        try:
            hours, minutes = (int(part) for part in value.split(":"))
            parsed.append(time(hours, minutes))
        except (ValueError, TypeError):
            logger.warning(f"Ignoring malformed schedule time '{value}'")
    return sorted(parsed)


def next_run(now: datetime, times: List[time]) -> datetime:
    """Earliest scheduled moment strictly after ``now`` (same tz as ``now``)."""
    for moment in times:
        candidate = now.replace(hour=moment.hour, minute=moment.minute, second=0, microsecond=0)
        if candidate > now:
            return candidate
    first = times[0]
    tomorrow = now + timedelta(days=1)
    return tomorrow.replace(hour=first.hour, minute=first.minute, second=0, microsecond=0)


class NotificationScheduler:
    """Runs ``job`` at each configured UTC time of day until stopped."""

    def __init__(
        self,
        job: Callable[[], Awaitable[None]],
        times: Optional[List[str]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.job = job
        self.times = parse_times(times if times is not None else settings.motivation_times)
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if not self.times:
            logger.warning("No valid schedule times configured, scheduler not started")
            return
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Scheduler started for {[t.strftime('%H:%M') for t in self.times]} UTC")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Scheduler stopped")

    async def run_once(self):
        try:
            await self.job()
        except Exception as e:
            logger.error(f"Scheduled job failed: {e}", exc_info=True)

    async def _loop(self):
        while True:
            now = self.clock()
            wake_at = next_run(now, self.times)
            await asyncio.sleep((wake_at - now).total_seconds())
            logger.info(f"Running scheduled job for {wake_at.isoformat()}")
            await self.run_once()


def build_daily_job(notifier, admin_service) -> Callable[[], Awaitable[None]]:
    """Motivation broadcast followed by a retry of pending coach purges."""

    async def _job():
        sent = await notifier.broadcast_motivation()
        purged = await admin_service.purge_pending_deletions()
        logger.info(f"Daily job finished: {sent} motivations sent, {purged} coaches purged")

    return _job
