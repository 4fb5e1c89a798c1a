"""Tests for the daily notification scheduler."""

from datetime import datetime, time, timezone

import pytest

from services.scheduler import NotificationScheduler, build_daily_job, next_run, parse_times


def test_parse_times_sorts_and_drops_garbage():
    assert parse_times(["19:00", "bad", "08:30", "25:00"]) == [time(8, 30), time(19, 0)]


@pytest.mark.parametrize("now,expected", [
    (datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc), datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)),
    (datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc), datetime(2024, 5, 1, 19, 0, tzinfo=timezone.utc)),
    (datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc), datetime(2024, 5, 2, 8, 0, tzinfo=timezone.utc)),
    (datetime(2024, 12, 31, 23, 0, tzinfo=timezone.utc), datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)),
])
def test_next_run(now, expected):
    assert next_run(now, [time(8, 0), time(19, 0)]) == expected


@pytest.mark.asyncio
async def test_run_once_swallows_job_errors():
    calls = []

    async def job():
        calls.append(1)
        raise RuntimeError("boom")

    await NotificationScheduler(job, times=["08:00"]).run_once()

    assert calls == [1]


@pytest.mark.asyncio
async def test_start_and_stop():
    async def job():
        return None

    scheduler = NotificationScheduler(job, times=["08:00"])
    scheduler.start()
    assert scheduler.running
    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_scheduler_without_times_does_not_start():
    async def job():
        return None

    scheduler = NotificationScheduler(job, times=[])
    scheduler.start()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_daily_job_runs_broadcast_and_purge():
    class Notifier:
        async def broadcast_motivation(self):
            return 3

    class Admin:
        purged = False

        async def purge_pending_deletions(self):
            Admin.purged = True
            return 0

    await build_daily_job(Notifier(), Admin())()

    assert Admin.purged is True
